from supabase import Client
from app.modules.admin.schemas import (
    AdminMessageCreate, AdminMessageResponse, BanResponse, RoleAssignResponse,
    SkillModerationResponse, AdminOverview, AdminSkillResponse, AdminRequestResponse
)
from app.modules.auth.role_resolver import SessionRoleCache, session_role_cache
from app.modules.profiles.schemas import ProfileResponse
from app.modules.profiles.service import normalize_profile
from app.modules.requests.lifecycle import RequestStatus
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Dict, Set
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, supabase: Client, role_cache: Optional[SessionRoleCache] = None):
        self.supabase = supabase
        self.role_cache = role_cache if role_cache is not None else session_role_cache

    # Users

    def list_users(self, banned_only: bool = False) -> List[ProfileResponse]:
        try:
            query = self.supabase.table("profiles").select("*")
            if banned_only:
                query = query.eq("is_banned", True)
            result = query.order("created_at", desc=True).execute()
            return [ProfileResponse(**normalize_profile(p)) for p in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_banned(self, user_id: str, banned: bool, admin_id: str) -> BanResponse:
        """Flip the banned flag; existing sessions and data are left alone"""
        try:
            result = self.supabase.table("profiles")\
                .update({"is_banned": banned})\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            logger.info(f"Admin {admin_id} {'banned' if banned else 'unbanned'} user {user_id}")
            return BanResponse(user_id=user_id, is_banned=banned)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_role(self, user_id: str, role: str, admin_id: str) -> RoleAssignResponse:
        """Assign a role and drop any cached role for the user's sessions"""
        try:
            result = self.supabase.table("user_roles")\
                .upsert({"user_id": user_id, "role": role}, on_conflict="user_id")\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to assign role")

            invalidated = self.role_cache.invalidate_user(user_id)
            logger.info(f"Admin {admin_id} set role {role} for user {user_id}")
            return RoleAssignResponse(user_id=user_id, role=role, invalidated_sessions=invalidated)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Skills

    def list_skills(self, pending_only: bool = False) -> List[AdminSkillResponse]:
        """All skills, newest first, with the owner's name"""
        try:
            query = self.supabase.table("skills").select("*")
            if pending_only:
                query = query.eq("is_approved", False)
            result = query.order("created_at", desc=True).execute()
            rows = result.data or []
            names = self._names({s["user_id"] for s in rows})
            return [AdminSkillResponse(**s, owner_name=names.get(s["user_id"])) for s in rows]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def approve_skill(self, skill_id: str, admin_id: str) -> SkillModerationResponse:
        try:
            result = self.supabase.table("skills")\
                .update({"is_approved": True})\
                .eq("id", skill_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Skill not found")

            logger.info(f"Admin {admin_id} approved skill {skill_id}")
            return SkillModerationResponse(skill_id=skill_id, action="approved")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def reject_skill(self, skill_id: str, admin_id: str) -> SkillModerationResponse:
        """Delete the skill outright; requests referencing it cascade away with it"""
        try:
            result = self.supabase.table("skills")\
                .delete()\
                .eq("id", skill_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Skill not found")

            logger.info(f"Admin {admin_id} rejected (deleted) skill {skill_id}")
            return SkillModerationResponse(skill_id=skill_id, action="rejected")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Requests

    def list_requests(self, status: Optional[RequestStatus] = None) -> List[AdminRequestResponse]:
        """All requests, newest first, with participant names and skill titles"""
        try:
            query = self.supabase.table("skill_requests").select("*")
            if status is not None:
                query = query.eq("status", status.value)
            result = query.order("created_at", desc=True).execute()
            rows = result.data or []
            if not rows:
                return []

            names = self._names({r["requester_id"] for r in rows} | {r["provider_id"] for r in rows})
            skill_ids = list({r["offered_skill_id"] for r in rows} | {r["wanted_skill_id"] for r in rows})
            skills_result = self.supabase.table("skills")\
                .select("id, title")\
                .in_("id", skill_ids)\
                .execute()
            titles = {s["id"]: s["title"] for s in (skills_result.data or [])}

            return [
                AdminRequestResponse(
                    **r,
                    requester_name=names.get(r["requester_id"]),
                    provider_name=names.get(r["provider_id"]),
                    offered_skill_title=titles.get(r["offered_skill_id"]),
                    wanted_skill_title=titles.get(r["wanted_skill_id"]),
                )
                for r in rows
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _names(self, user_ids: Set[str]) -> Dict[str, str]:
        if not user_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select("user_id, full_name")\
            .in_("user_id", list(user_ids))\
            .execute()
        return {p["user_id"]: p["full_name"] for p in (result.data or [])}

    # Announcements

    def create_message(self, message_data: AdminMessageCreate, admin_id: str) -> AdminMessageResponse:
        try:
            result = self.supabase.table("admin_messages").insert({
                "admin_id": admin_id,
                "title": message_data.title,
                "message": message_data.message,
                "is_active": message_data.is_active,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create announcement")

            logger.info(f"Admin {admin_id} created announcement {result.data[0]['id']}")
            return AdminMessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle_message(self, message_id: str, admin_id: str) -> AdminMessageResponse:
        """Flip is_active. Concurrent toggles are last-write-wins."""
        try:
            current = self.supabase.table("admin_messages")\
                .select("is_active")\
                .eq("id", message_id)\
                .maybe_single()\
                .execute()

            if current is None or not current.data:
                raise HTTPException(status_code=404, detail="Announcement not found")

            result = self.supabase.table("admin_messages")\
                .update({"is_active": not current.data["is_active"]})\
                .eq("id", message_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Announcement not found")

            logger.info(f"Admin {admin_id} set announcement {message_id} active={result.data[0]['is_active']}")
            return AdminMessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_messages(self, active_only: bool = False) -> List[AdminMessageResponse]:
        try:
            query = self.supabase.table("admin_messages").select("*")
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("created_at", desc=True).execute()
            return [AdminMessageResponse(**m) for m in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Overview

    def get_overview(self, now: Optional[datetime] = None) -> AdminOverview:
        try:
            week_ago = (now or datetime.now(timezone.utc)) - timedelta(days=7)
            profiles = self.supabase.table("profiles").select("is_banned").execute().data or []
            new_users = self.supabase.table("profiles")\
                .select("id")\
                .gte("created_at", week_ago.isoformat())\
                .execute().data or []
            skills = self.supabase.table("skills").select("is_approved").execute().data or []
            requests = self.supabase.table("skill_requests").select("status").execute().data or []
            ratings = self.supabase.table("ratings").select("rating").execute().data or []
            active = self.supabase.table("admin_messages").select("id").eq("is_active", True).execute().data or []

            by_status = {s.value: 0 for s in RequestStatus}
            for r in requests:
                by_status[r["status"]] = by_status.get(r["status"], 0) + 1

            return AdminOverview(
                total_users=len(profiles),
                banned_users=sum(1 for p in profiles if p.get("is_banned")),
                total_skills=len(skills),
                pending_skills=sum(1 for s in skills if not s.get("is_approved")),
                requests_by_status=by_status,
                active_announcements=len(active),
                new_users_this_week=len(new_users),
                average_rating=sum(r["rating"] for r in ratings) / len(ratings) if ratings else 0.0,
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

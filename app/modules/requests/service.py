from supabase import Client
from app.modules.requests.schemas import (
    SkillRequestCreate, SkillRequestResponse, SkillRequestDetail, SkillRequestList, PartnerSummary
)
from app.modules.requests.lifecycle import RequestStatus, plan_transition
from app.database.supabase_client import is_unique_violation, is_check_violation
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class SkillRequestService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_row(self, request_id: str) -> Dict[str, Any]:
        result = self.supabase.table("skill_requests")\
            .select("*")\
            .eq("id", request_id)\
            .maybe_single()\
            .execute()
        if result is None or not result.data:
            raise HTTPException(status_code=404, detail="Skill request not found")
        return result.data

    def _validate_skills(self, data: SkillRequestCreate, requester_id: str) -> None:
        """Offered skill must be the requester's, wanted skill the provider's; both offered and approved."""
        result = self.supabase.table("skills")\
            .select("id, user_id, is_offering, is_approved")\
            .in_("id", [data.offered_skill_id, data.wanted_skill_id])\
            .execute()
        skills = {s["id"]: s for s in (result.data or [])}

        offered = skills.get(data.offered_skill_id)
        if not offered or offered["user_id"] != requester_id:
            raise HTTPException(status_code=400, detail="Offered skill must be one of your own skills")
        if not offered.get("is_offering") or not offered.get("is_approved"):
            raise HTTPException(status_code=400, detail="Offered skill must be an approved skill you offer")

        wanted = skills.get(data.wanted_skill_id)
        if not wanted or wanted["user_id"] != data.provider_id:
            raise HTTPException(status_code=400, detail="Wanted skill must belong to the provider")
        if not wanted.get("is_offering") or not wanted.get("is_approved"):
            raise HTTPException(status_code=400, detail="Wanted skill must be an approved skill the provider offers")

    def _has_pending_duplicate(self, data: SkillRequestCreate, requester_id: str) -> bool:
        existing = self.supabase.table("skill_requests")\
            .select("id")\
            .eq("requester_id", requester_id)\
            .eq("provider_id", data.provider_id)\
            .eq("offered_skill_id", data.offered_skill_id)\
            .eq("wanted_skill_id", data.wanted_skill_id)\
            .eq("status", RequestStatus.PENDING.value)\
            .limit(1)\
            .execute()
        return bool(existing.data)

    def create_request(self, data: SkillRequestCreate, requester_id: str) -> SkillRequestResponse:
        """Create a pending swap request from the caller to a provider"""
        try:
            if data.provider_id == requester_id:
                raise HTTPException(status_code=400, detail="You cannot send a skill request to yourself")

            profiles = self.supabase.table("profiles")\
                .select("user_id, is_banned")\
                .in_("user_id", [requester_id, data.provider_id])\
                .execute()
            by_user = {p["user_id"]: p for p in (profiles.data or [])}
            if data.provider_id not in by_user:
                raise HTTPException(status_code=404, detail="Provider not found")
            if by_user.get(requester_id, {}).get("is_banned"):
                raise HTTPException(status_code=403, detail="Banned users cannot create skill requests")
            if by_user[data.provider_id].get("is_banned"):
                raise HTTPException(status_code=400, detail="This user is not accepting skill requests")

            self._validate_skills(data, requester_id)

            if self._has_pending_duplicate(data, requester_id):
                raise HTTPException(status_code=409, detail="A pending request for this skill swap already exists")

            result = self.supabase.table("skill_requests").insert({
                "requester_id": requester_id,
                "provider_id": data.provider_id,
                "offered_skill_id": data.offered_skill_id,
                "wanted_skill_id": data.wanted_skill_id,
                "message": data.message,
                "status": RequestStatus.PENDING.value,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create skill request")

            created = result.data[0]
            logger.info(f"Skill request {created['id']} created: {requester_id} -> {data.provider_id}")
            return SkillRequestResponse(**created)
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail="A pending request for this skill swap already exists")
            raise HTTPException(status_code=500, detail=str(e))

    def get_request(self, request_id: str, user_id: str, is_admin: bool = False) -> SkillRequestDetail:
        """Get one request with skill titles and partner summary (participants and admins)"""
        try:
            row = self._get_row(request_id)
            if not is_admin and user_id not in (row["requester_id"], row["provider_id"]):
                raise HTTPException(status_code=403, detail="You must be the requester or provider of this skill request")
            return self._enrich([row], user_id)[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def transition(self, request_id: str, action: str, user_id: str) -> SkillRequestResponse:
        """Apply accept / reject / cancel / complete for the caller.

        The write is conditional on the status the decision was based on; if another
        participant changed it in between, no row matches and the caller gets 409.
        """
        try:
            row = self._get_row(request_id)
            transition = plan_transition(row, action, user_id)

            result = self.supabase.table("skill_requests")\
                .update({"status": transition.target.value})\
                .eq("id", request_id)\
                .eq("status", transition.source.value)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=409, detail="Request status changed before your update was applied")

            logger.info(f"Skill request {request_id}: {transition.source.value} -> {transition.target.value} by {user_id}")
            return SkillRequestResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            if is_check_violation(e):
                logger.warning(f"Store refused status change on skill request {request_id}: {str(e)}")
                raise HTTPException(status_code=409, detail="Request status does not allow this change")
            raise HTTPException(status_code=500, detail=str(e))

    def list_incoming(self, user_id: str) -> SkillRequestList:
        """Pending requests where the caller is the provider"""
        query = self.supabase.table("skill_requests")\
            .select("*")\
            .eq("provider_id", user_id)\
            .eq("status", RequestStatus.PENDING.value)
        return self._list(query, user_id)

    def list_outgoing(self, user_id: str) -> SkillRequestList:
        """The caller's own requests that are still open (pending or accepted)"""
        query = self.supabase.table("skill_requests")\
            .select("*")\
            .eq("requester_id", user_id)\
            .in_("status", [RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value])
        return self._list(query, user_id)

    def list_connections(self, user_id: str) -> SkillRequestList:
        """Accepted swaps on either side: the caller's active learning partners"""
        query = self.supabase.table("skill_requests")\
            .select("*")\
            .or_(f"requester_id.eq.{user_id},provider_id.eq.{user_id}")\
            .eq("status", RequestStatus.ACCEPTED.value)
        return self._list(query, user_id)

    def list_history(self, user_id: str, status: Optional[RequestStatus] = None) -> SkillRequestList:
        query = self.supabase.table("skill_requests")\
            .select("*")\
            .or_(f"requester_id.eq.{user_id},provider_id.eq.{user_id}")
        if status is not None:
            query = query.eq("status", status.value)
        return self._list(query, user_id)

    def _list(self, query, user_id: str) -> SkillRequestList:
        try:
            result = query.order("created_at", desc=True).execute()
            items = self._enrich(result.data or [], user_id)
            return SkillRequestList(items=items, total=len(items))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _enrich(self, rows: List[Dict[str, Any]], viewer_id: str) -> List[SkillRequestDetail]:
        """Attach skill titles and the other participant's profile summary"""
        if not rows:
            return []
        skill_ids = list({r["offered_skill_id"] for r in rows} | {r["wanted_skill_id"] for r in rows})
        partner_ids = list({
            r["provider_id"] if r["requester_id"] == viewer_id else r["requester_id"] for r in rows
        })

        skills_result = self.supabase.table("skills")\
            .select("id, title")\
            .in_("id", skill_ids)\
            .execute()
        titles = {s["id"]: s["title"] for s in (skills_result.data or [])}

        profiles_result = self.supabase.table("profiles")\
            .select("user_id, full_name, avatar_url, location")\
            .in_("user_id", partner_ids)\
            .execute()
        partners = {p["user_id"]: p for p in (profiles_result.data or [])}

        items = []
        for row in rows:
            partner_id = row["provider_id"] if row["requester_id"] == viewer_id else row["requester_id"]
            partner = partners.get(partner_id)
            items.append(SkillRequestDetail(
                **row,
                offered_skill_title=titles.get(row["offered_skill_id"]),
                wanted_skill_title=titles.get(row["wanted_skill_id"]),
                partner=PartnerSummary(**partner) if partner else None,
            ))
        return items

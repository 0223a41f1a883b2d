import os
import time
from supabase import Client
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileResponse, ProfileWithSkillsResponse, AvatarUploadResponse
)
from app.modules.skills.schemas import SkillResponse, SkillCategory
from app.modules.profiles.avatar_storage import get_avatar_storage
from app.config import settings
from typing import List, Optional, Dict, Any, Set
from fastapi import HTTPException, UploadFile
import logging

logger = logging.getLogger(__name__)


def normalize_profile(row: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(row)
    data["availability"] = data.get("availability") or []
    data["average_rating"] = float(data.get("average_rating") or 0.0)
    data["successful_swaps"] = data.get("successful_swaps") or 0
    return data


class ProfileService:
    def __init__(self, supabase: Client, storage_client: Optional[Client] = None):
        self.supabase = supabase
        self.storage_client = storage_client or supabase

    def get_profile_by_user_id(self, user_id: str) -> ProfileResponse:
        """Get a profile by its auth user id"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("user_id", user_id)\
                .maybe_single()\
                .execute()

            if result is None or not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**normalize_profile(result.data))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_profile_by_id(self, profile_id: str) -> ProfileWithSkillsResponse:
        """Get a profile (public, own, or any for admins) with its approved skills"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", profile_id)\
                .maybe_single()\
                .execute()

            if result is None or not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            profile = normalize_profile(result.data)
            skills = self._approved_skills([profile["user_id"]]).get(profile["user_id"], [])
            return ProfileWithSkillsResponse(
                **profile,
                skills_offered=[s for s in skills if s.is_offering],
                skills_wanted=[s for s in skills if not s.is_offering],
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the caller's own profile"""
        try:
            update_data = {}
            if profile_data.full_name is not None:
                update_data["full_name"] = profile_data.full_name.strip()
            if profile_data.location is not None:
                update_data["location"] = profile_data.location
            if profile_data.bio is not None:
                update_data["bio"] = profile_data.bio
            if profile_data.is_public is not None:
                update_data["is_public"] = profile_data.is_public
            if profile_data.availability is not None:
                update_data["availability"] = [a.value for a in profile_data.availability]
            if not update_data:
                return self.get_profile_by_user_id(user_id)

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**normalize_profile(result.data[0]))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def browse_profiles(
        self,
        current_user_id: str,
        q: Optional[str] = None,
        category: Optional[SkillCategory] = None,
        limit: int = 20,
        offset: int = 0
    ) -> List[ProfileWithSkillsResponse]:
        """Public, non-banned profiles other than the caller's, with approved skills.

        q matches skill titles (case-insensitive); category keeps profiles that have
        at least one approved skill in that category. Both narrow the profile query
        before it is paged.
        """
        try:
            query = self.supabase.table("profiles")\
                .select("*")\
                .eq("is_public", True)\
                .eq("is_banned", False)\
                .neq("user_id", current_user_id)

            needle = q.strip() if q else None
            if needle or category:
                candidates = self._users_with_matching_skills(needle, category)
                if not candidates:
                    return []
                query = query.in_("user_id", sorted(candidates))

            result = query\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            profiles = [normalize_profile(p) for p in (result.data or [])]
            skills_by_user = self._approved_skills([p["user_id"] for p in profiles])

            browse = []
            for profile in profiles:
                skills = skills_by_user.get(profile["user_id"], [])
                browse.append(ProfileWithSkillsResponse(
                    **profile,
                    skills_offered=[s for s in skills if s.is_offering],
                    skills_wanted=[s for s in skills if not s.is_offering],
                ))
            return browse
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _users_with_matching_skills(self, needle: Optional[str], category: Optional[SkillCategory]) -> Set[str]:
        """User ids owning an approved skill titled like `needle` and one in `category`"""
        matched: Optional[Set[str]] = None
        if needle:
            result = self.supabase.table("skills")\
                .select("user_id")\
                .eq("is_approved", True)\
                .ilike("title", f"%{needle}%")\
                .execute()
            matched = {row["user_id"] for row in (result.data or [])}
        if category:
            result = self.supabase.table("skills")\
                .select("user_id")\
                .eq("is_approved", True)\
                .eq("category", category.value)\
                .execute()
            in_category = {row["user_id"] for row in (result.data or [])}
            matched = in_category if matched is None else matched & in_category
        return matched or set()

    def _approved_skills(self, user_ids: List[str]) -> Dict[str, List[SkillResponse]]:
        if not user_ids:
            return {}
        result = self.supabase.table("skills")\
            .select("*")\
            .in_("user_id", user_ids)\
            .eq("is_approved", True)\
            .execute()
        by_user: Dict[str, List[SkillResponse]] = {}
        for row in result.data or []:
            by_user.setdefault(row["user_id"], []).append(SkillResponse(**row))
        return by_user

    async def upload_avatar(self, user_id: str, file: UploadFile) -> AvatarUploadResponse:
        """Store an avatar image under <user_id>/ and point the profile at it"""
        content_type = file.content_type or ""
        if not content_type.startswith("image/"):
            raise HTTPException(status_code=400, detail="Avatar must be an image file")

        # One byte past the limit is enough to know the upload is too large
        file_content = await file.read(settings.avatar_max_bytes + 1)
        if len(file_content) > settings.avatar_max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Avatar must be at most {settings.avatar_max_bytes // (1024 * 1024)} MB"
            )

        file_extension = os.path.splitext(file.filename or "")[1].lstrip(".") or content_type.split("/")[-1]
        path = f"{user_id}/{int(time.time() * 1000)}.{file_extension}"

        try:
            storage = get_avatar_storage(self.storage_client)
            avatar_url = storage.upload_file(file_content, path, content_type)
        except Exception as e:
            logger.error(f"Avatar upload failed for user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload avatar: {str(e)}")

        try:
            self.supabase.table("profiles")\
                .update({"avatar_url": avatar_url})\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Avatar updated for user {user_id}: {path}")
        return AvatarUploadResponse(avatar_url=avatar_url, path=path)

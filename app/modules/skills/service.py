from supabase import Client
from app.modules.skills.schemas import SkillCreate, SkillUpdate, SkillResponse
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

CONTENT_FIELDS = frozenset({"title", "description", "category"})


class SkillService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_skill(self, skill_data: SkillCreate, user_id: str) -> SkillResponse:
        """Add a skill to the caller's profile"""
        try:
            result = self.supabase.table("skills").insert({
                "user_id": user_id,
                "title": skill_data.title.strip(),
                "description": skill_data.description,
                "category": skill_data.category.value,
                "is_offering": skill_data.is_offering,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create skill")

            return SkillResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_skill_by_id(self, skill_id: str) -> SkillResponse:
        try:
            result = self.supabase.table("skills")\
                .select("*")\
                .eq("id", skill_id)\
                .maybe_single()\
                .execute()

            if result is None or not result.data:
                raise HTTPException(status_code=404, detail="Skill not found")

            return SkillResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_user_skills(
        self,
        user_id: str,
        approved_only: bool = True,
        is_offering: Optional[bool] = None
    ) -> List[SkillResponse]:
        """List one user's skills; other users only ever see approved ones"""
        try:
            query = self.supabase.table("skills").select("*").eq("user_id", user_id)
            if approved_only:
                query = query.eq("is_approved", True)
            if is_offering is not None:
                query = query.eq("is_offering", is_offering)
            result = query.order("created_at", desc=False).execute()
            return [SkillResponse(**s) for s in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_skill(self, skill_id: str, skill_data: SkillUpdate, user_id: str) -> SkillResponse:
        """Update one of the caller's skills; text or category edits send it back to moderation"""
        try:
            skill = self.get_skill_by_id(skill_id)
            if skill.user_id != user_id:
                raise HTTPException(status_code=403, detail="You can only edit your own skills")

            update_data = {}
            if skill_data.title:
                update_data["title"] = skill_data.title.strip()
            if skill_data.description is not None:
                update_data["description"] = skill_data.description
            if skill_data.category is not None:
                update_data["category"] = skill_data.category.value
            if skill_data.is_offering is not None:
                update_data["is_offering"] = skill_data.is_offering
            if not update_data:
                return skill
            # Changed text has not been moderated yet
            current = skill.model_dump(mode="json")
            if any(update_data[f] != current[f] for f in CONTENT_FIELDS & update_data.keys()):
                update_data["is_approved"] = False

            result = self.supabase.table("skills")\
                .update(update_data)\
                .eq("id", skill_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Skill not found")

            return SkillResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_skill(self, skill_id: str, user_id: str) -> bool:
        """Delete one of the caller's skills"""
        try:
            skill = self.get_skill_by_id(skill_id)
            if skill.user_id != user_id:
                raise HTTPException(status_code=403, detail="You can only delete your own skills")

            result = self.supabase.table("skills")\
                .delete()\
                .eq("id", skill_id)\
                .execute()

            return len(result.data or []) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

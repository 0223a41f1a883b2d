from fastapi import APIRouter, Depends
from app.modules.skills.schemas import SkillCreate, SkillUpdate, SkillResponse
from app.modules.skills.service import SkillService
from app.core.dependencies import get_current_user_id, get_user_supabase
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/skills", tags=["skills"])


def get_skill_service(supabase: Client = Depends(get_user_supabase)) -> SkillService:
    return SkillService(supabase)


@router.post("", response_model=SkillResponse, status_code=201)
async def create_skill(
    skill_data: SkillCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillService = Depends(get_skill_service)
):
    """Add a skill I can teach (is_offering) or want to learn"""
    return service.create_skill(skill_data, user_data["id"])


@router.get("/me", response_model=List[SkillResponse])
async def list_my_skills(
    is_offering: Optional[bool] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillService = Depends(get_skill_service)
):
    """All my skills, including ones awaiting approval"""
    return service.list_user_skills(user_data["id"], approved_only=False, is_offering=is_offering)


@router.get("/users/{user_id}", response_model=List[SkillResponse])
async def list_user_skills(
    user_id: str,
    is_offering: Optional[bool] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillService = Depends(get_skill_service)
):
    """Approved skills of another user"""
    return service.list_user_skills(user_id, approved_only=True, is_offering=is_offering)


@router.put("/{skill_id}", response_model=SkillResponse)
async def update_skill(
    skill_id: str,
    skill_data: SkillUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillService = Depends(get_skill_service)
):
    return service.update_skill(skill_id, skill_data, user_data["id"])


@router.delete("/{skill_id}", status_code=204)
async def delete_skill(
    skill_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillService = Depends(get_skill_service)
):
    service.delete_skill(skill_id, user_data["id"])
    return None

from fastapi import APIRouter, Depends, File, UploadFile
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileResponse, ProfileWithSkillsResponse, AvatarUploadResponse
)
from app.modules.profiles.service import ProfileService
from app.modules.skills.schemas import SkillCategory
from app.core.dependencies import get_current_user_id, get_user_supabase
from app.database.supabase_client import get_service_supabase
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_user_supabase)) -> ProfileService:
    return ProfileService(supabase, storage_client=get_service_supabase())


@router.get("", response_model=List[ProfileWithSkillsResponse])
async def browse_profiles(
    q: Optional[str] = None,
    category: Optional[SkillCategory] = None,
    limit: int = 20,
    offset: int = 0,
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    """Browse other users' public profiles and their approved skills"""
    return service.browse_profiles(user_data["id"], q=q, category=category, limit=limit, offset=offset)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile_by_user_id(user_data["id"])


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    return service.update_profile(user_data["id"], profile_data)


@router.post("/me/avatar", response_model=AvatarUploadResponse, status_code=201)
async def upload_avatar(
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    """Upload a profile picture (image, at most 5 MB)"""
    return await service.upload_avatar(user_data["id"], file)


@router.get("/{profile_id}", response_model=ProfileWithSkillsResponse)
async def get_profile(
    profile_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    """Get a profile with its approved skills"""
    return service.get_profile_by_id(profile_id)

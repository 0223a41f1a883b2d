from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from app.modules.skills.schemas import SkillResponse


class Availability(str, Enum):
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    EVENINGS = "evenings"
    MORNINGS = "mornings"
    FLEXIBLE = "flexible"


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=120)
    location: Optional[str] = Field(None, max_length=120)
    bio: Optional[str] = Field(None, max_length=2000)
    is_public: Optional[bool] = None
    availability: Optional[List[Availability]] = None


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    full_name: str
    location: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    is_public: bool = True
    is_banned: bool = False
    availability: List[Availability] = []
    average_rating: float = 0.0
    successful_swaps: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileWithSkillsResponse(ProfileResponse):
    skills_offered: List[SkillResponse] = []
    skills_wanted: List[SkillResponse] = []


class AvatarUploadResponse(BaseModel):
    avatar_url: str
    path: str

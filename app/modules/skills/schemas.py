from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class SkillCategory(str, Enum):
    TECHNOLOGY = "technology"
    LANGUAGE = "language"
    MUSIC = "music"
    ART = "art"
    COOKING = "cooking"
    SPORTS = "sports"
    BUSINESS = "business"
    OTHER = "other"


class SkillCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    category: SkillCategory
    is_offering: bool = True


class SkillUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = Field(None, max_length=1000)
    category: Optional[SkillCategory] = None
    is_offering: Optional[bool] = None


class SkillResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    category: SkillCategory
    is_offering: bool
    is_approved: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

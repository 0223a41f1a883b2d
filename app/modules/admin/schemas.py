from pydantic import BaseModel, Field
from typing import Optional, Dict, Literal
from datetime import datetime
from app.modules.skills.schemas import SkillResponse
from app.modules.requests.schemas import SkillRequestResponse


class AdminMessageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    is_active: bool = True


class AdminMessageResponse(BaseModel):
    id: str
    admin_id: str
    title: str
    message: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class BanResponse(BaseModel):
    user_id: str
    is_banned: bool


class RoleAssign(BaseModel):
    role: Literal["admin", "user"]


class RoleAssignResponse(BaseModel):
    user_id: str
    role: str
    invalidated_sessions: int


class SkillModerationResponse(BaseModel):
    skill_id: str
    action: Literal["approved", "rejected"]


class AdminSkillResponse(SkillResponse):
    owner_name: Optional[str] = None


class AdminRequestResponse(SkillRequestResponse):
    requester_name: Optional[str] = None
    provider_name: Optional[str] = None
    offered_skill_title: Optional[str] = None
    wanted_skill_title: Optional[str] = None


class AdminOverview(BaseModel):
    total_users: int
    banned_users: int
    total_skills: int
    pending_skills: int
    requests_by_status: Dict[str, int]
    active_announcements: int
    new_users_this_week: int
    average_rating: float  # mean of all submitted ratings


ReportType = Literal["users", "skills", "swaps"]

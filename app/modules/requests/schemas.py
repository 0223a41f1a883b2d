from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from app.modules.requests.lifecycle import RequestStatus


class SkillRequestCreate(BaseModel):
    provider_id: str
    offered_skill_id: str  # one of the requester's own offered skills
    wanted_skill_id: str  # one of the provider's offered skills
    message: Optional[str] = Field(None, max_length=1000)

    @field_validator("message")
    @classmethod
    def blank_message_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class SkillRequestResponse(BaseModel):
    id: str
    requester_id: str
    provider_id: str
    offered_skill_id: str
    wanted_skill_id: str
    message: Optional[str] = None
    status: RequestStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PartnerSummary(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None


class SkillRequestDetail(SkillRequestResponse):
    offered_skill_title: Optional[str] = None
    wanted_skill_title: Optional[str] = None
    partner: Optional[PartnerSummary] = None


class SkillRequestList(BaseModel):
    items: List[SkillRequestDetail]
    total: int

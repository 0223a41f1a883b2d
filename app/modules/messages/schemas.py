from pydantic import BaseModel, field_validator
from datetime import datetime
from app.config import settings


class MessageCreate(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message content cannot be empty")
        if len(v) > settings.message_max_length:
            raise ValueError(f"Message content exceeds {settings.message_max_length} characters")
        return v


class MessageResponse(BaseModel):
    id: str
    skill_request_id: str
    sender_id: str
    content: str
    is_read: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class MarkReadResponse(BaseModel):
    skill_request_id: str
    marked_count: int


class UnreadCountResponse(BaseModel):
    skill_request_id: str
    unread_count: int

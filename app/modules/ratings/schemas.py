from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


class RatingCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = Field(None, max_length=2000)

    @field_validator("feedback")
    @classmethod
    def blank_feedback_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class RatingResponse(BaseModel):
    id: str
    request_id: str
    rater_id: str
    rated_id: str
    rating: int
    feedback: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RatedProfileStats(BaseModel):
    user_id: str
    average_rating: float = 0.0
    successful_swaps: int = 0


class RatingSubmitResponse(BaseModel):
    rating: RatingResponse
    rated_profile: Optional[RatedProfileStats] = None


class RatingEligibility(BaseModel):
    request_id: str
    can_rate: bool
    reason: Optional[str] = None
    partner_id: Optional[str] = None


class ReceivedRatings(BaseModel):
    user_id: str
    ratings: List[RatingResponse]
    average_rating: float
    count: int

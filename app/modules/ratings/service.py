from supabase import Client
from app.modules.ratings.schemas import (
    RatingCreate, RatingResponse, RatingSubmitResponse, RatedProfileStats,
    RatingEligibility, ReceivedRatings
)
from app.modules.requests.lifecycle import RequestStatus, actor_for, Actor
from app.core.dependencies import check_request_participant
from app.database.supabase_client import is_unique_violation
from typing import Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def partner_of(skill_request: Dict[str, Any], user_id: str) -> str:
    if actor_for(skill_request, user_id) == Actor.REQUESTER:
        return skill_request["provider_id"]
    return skill_request["requester_id"]


class RatingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _existing_rating_id(self, request_id: str, rater_id: str) -> Optional[str]:
        result = self.supabase.table("ratings")\
            .select("id")\
            .eq("request_id", request_id)\
            .eq("rater_id", rater_id)\
            .limit(1)\
            .execute()
        return result.data[0]["id"] if result.data else None

    def get_eligibility(self, request_id: str, user_data: dict) -> RatingEligibility:
        """Whether the caller may still rate this request"""
        try:
            skill_request = check_request_participant(request_id, user_data, self.supabase)
            partner_id = partner_of(skill_request, user_data["id"])
            if skill_request["status"] != RequestStatus.COMPLETED.value:
                return RatingEligibility(request_id=request_id, can_rate=False, partner_id=partner_id,
                                         reason="Only completed swaps can be rated")
            if self._existing_rating_id(request_id, user_data["id"]):
                return RatingEligibility(request_id=request_id, can_rate=False, partner_id=partner_id,
                                         reason="You have already rated this swap")
            return RatingEligibility(request_id=request_id, can_rate=True, partner_id=partner_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def submit_rating(self, request_id: str, user_data: dict, rating_data: RatingCreate) -> RatingSubmitResponse:
        """Rate the other participant of a completed request, once per rater.

        The read-before-write check gives a friendly error; the (request_id, rater_id)
        unique constraint is what actually holds under concurrent submissions.
        """
        try:
            rater_id = user_data["id"]
            skill_request = check_request_participant(request_id, user_data, self.supabase)
            if skill_request["status"] != RequestStatus.COMPLETED.value:
                raise HTTPException(status_code=409, detail="Only completed swaps can be rated")
            if self._existing_rating_id(request_id, rater_id):
                raise HTTPException(status_code=409, detail="You have already rated this swap")

            rated_id = partner_of(skill_request, rater_id)
            result = self.supabase.table("ratings").insert({
                "request_id": request_id,
                "rater_id": rater_id,
                "rated_id": rated_id,
                "rating": rating_data.rating,
                "feedback": rating_data.feedback,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to submit rating")

            logger.info(f"User {rater_id} rated {rated_id} {rating_data.rating}/5 for request {request_id}")
            return RatingSubmitResponse(
                rating=RatingResponse(**result.data[0]),
                rated_profile=self._profile_stats(rated_id),
            )
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail="You have already rated this swap")
            raise HTTPException(status_code=500, detail=str(e))

    def _profile_stats(self, user_id: str) -> Optional[RatedProfileStats]:
        """Aggregates written by the ratings trigger in the insert's transaction"""
        result = self.supabase.table("profiles")\
            .select("user_id, average_rating, successful_swaps")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if result is None or not result.data:
            return None
        data = result.data
        return RatedProfileStats(
            user_id=data["user_id"],
            average_rating=float(data.get("average_rating") or 0.0),
            successful_swaps=data.get("successful_swaps") or 0,
        )

    def list_received(self, user_id: str) -> ReceivedRatings:
        try:
            result = self.supabase.table("ratings")\
                .select("*")\
                .eq("rated_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            ratings = [RatingResponse(**r) for r in (result.data or [])]
            average = round(sum(r.rating for r in ratings) / len(ratings), 2) if ratings else 0.0
            return ReceivedRatings(user_id=user_id, ratings=ratings, average_rating=average, count=len(ratings))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

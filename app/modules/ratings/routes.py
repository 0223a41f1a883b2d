from fastapi import APIRouter, Depends
from app.modules.ratings.schemas import RatingCreate, RatingSubmitResponse, RatingEligibility, ReceivedRatings
from app.modules.ratings.service import RatingService
from app.core.dependencies import get_current_user_id, get_user_supabase
from supabase import Client
from typing import Dict

router = APIRouter(tags=["ratings"])


def get_rating_service(supabase: Client = Depends(get_user_supabase)) -> RatingService:
    return RatingService(supabase)


@router.post("/requests/{request_id}/rating", response_model=RatingSubmitResponse, status_code=201)
async def submit_rating(
    request_id: str,
    rating_data: RatingCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: RatingService = Depends(get_rating_service)
):
    """Rate your partner on a completed swap (once)"""
    return service.submit_rating(request_id, user_data, rating_data)


@router.get("/requests/{request_id}/rating/eligibility", response_model=RatingEligibility)
async def rating_eligibility(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: RatingService = Depends(get_rating_service)
):
    return service.get_eligibility(request_id, user_data)


@router.get("/ratings/received", response_model=ReceivedRatings)
async def received_ratings(
    user_data: Dict = Depends(get_current_user_id),
    service: RatingService = Depends(get_rating_service)
):
    """Ratings other participants gave me"""
    return service.list_received(user_data["id"])

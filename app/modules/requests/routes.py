from fastapi import APIRouter, Depends
from app.modules.requests.schemas import (
    SkillRequestCreate, SkillRequestResponse, SkillRequestDetail, SkillRequestList
)
from app.modules.requests.service import SkillRequestService
from app.modules.requests.lifecycle import RequestStatus
from app.modules.auth.role_resolver import RoleResolution
from app.core.dependencies import get_current_user_id, get_current_role, get_user_supabase
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/requests", tags=["requests"])


def get_request_service(supabase: Client = Depends(get_user_supabase)) -> SkillRequestService:
    return SkillRequestService(supabase)


@router.post("", response_model=SkillRequestResponse, status_code=201)
async def create_request(
    request_data: SkillRequestCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """Send a skill swap request to another user"""
    return service.create_request(request_data, user_data["id"])


@router.get("/incoming", response_model=SkillRequestList)
async def list_incoming(
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """Pending requests waiting for my answer"""
    return service.list_incoming(user_data["id"])


@router.get("/outgoing", response_model=SkillRequestList)
async def list_outgoing(
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """My open requests"""
    return service.list_outgoing(user_data["id"])


@router.get("/connections", response_model=SkillRequestList)
async def list_connections(
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """Accepted swaps (my learning network)"""
    return service.list_connections(user_data["id"])


@router.get("/history", response_model=SkillRequestList)
async def list_history(
    status: Optional[RequestStatus] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """All requests I am part of, optionally filtered by status"""
    return service.list_history(user_data["id"], status)


@router.get("/{request_id}", response_model=SkillRequestDetail)
async def get_request(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    resolution: RoleResolution = Depends(get_current_role),
    service: SkillRequestService = Depends(get_request_service)
):
    """Get a request (participants and admins)"""
    return service.get_request(request_id, user_data["id"], is_admin=resolution.is_admin)


@router.post("/{request_id}/accept", response_model=SkillRequestResponse)
async def accept_request(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """Provider accepts a pending request"""
    return service.transition(request_id, "accept", user_data["id"])


@router.post("/{request_id}/reject", response_model=SkillRequestResponse)
async def reject_request(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """Provider rejects a pending request"""
    return service.transition(request_id, "reject", user_data["id"])


@router.post("/{request_id}/cancel", response_model=SkillRequestResponse)
async def cancel_request(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """Requester withdraws a pending request"""
    return service.transition(request_id, "cancel", user_data["id"])


@router.post("/{request_id}/complete", response_model=SkillRequestResponse)
async def complete_request(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: SkillRequestService = Depends(get_request_service)
):
    """Either participant marks an accepted swap as completed"""
    return service.transition(request_id, "complete", user_data["id"])

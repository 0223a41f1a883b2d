from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from app.modules.admin.schemas import (
    AdminMessageCreate, AdminMessageResponse, BanResponse, RoleAssign, RoleAssignResponse,
    SkillModerationResponse, AdminOverview, AdminSkillResponse, AdminRequestResponse, ReportType
)
from app.modules.admin.service import AdminService
from app.modules.admin.reports import stream_report, report_filename
from app.modules.profiles.schemas import ProfileResponse
from app.modules.requests.lifecycle import RequestStatus
from app.core.dependencies import require_admin, get_current_user_id, get_user_supabase
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/admin", tags=["admin"])
announcements_router = APIRouter(prefix="/announcements", tags=["announcements"])


def get_admin_service(supabase: Client = Depends(get_user_supabase)) -> AdminService:
    return AdminService(supabase)


@router.get("/overview", response_model=AdminOverview)
async def overview(
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.get_overview()


@router.get("/users", response_model=List[ProfileResponse])
async def list_users(
    banned_only: bool = False,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_users(banned_only=banned_only)


@router.post("/users/{user_id}/ban", response_model=BanResponse)
async def ban_user(
    user_id: str,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.set_banned(user_id, True, admin["id"])


@router.post("/users/{user_id}/unban", response_model=BanResponse)
async def unban_user(
    user_id: str,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.set_banned(user_id, False, admin["id"])


@router.put("/users/{user_id}/role", response_model=RoleAssignResponse)
async def assign_role(
    user_id: str,
    role_data: RoleAssign,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.set_role(user_id, role_data.role, admin["id"])


@router.get("/skills", response_model=List[AdminSkillResponse])
async def list_skills(
    pending_only: bool = False,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_skills(pending_only=pending_only)


@router.post("/skills/{skill_id}/approve", response_model=SkillModerationResponse)
async def approve_skill(
    skill_id: str,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.approve_skill(skill_id, admin["id"])


@router.post("/skills/{skill_id}/reject", response_model=SkillModerationResponse)
async def reject_skill(
    skill_id: str,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Reject a skill. This deletes it and cannot be undone."""
    return service.reject_skill(skill_id, admin["id"])


@router.get("/requests", response_model=List[AdminRequestResponse])
async def list_requests(
    status: Optional[RequestStatus] = None,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_requests(status)


@router.get("/messages", response_model=List[AdminMessageResponse])
async def list_admin_messages(
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.list_messages()


@router.post("/messages", response_model=AdminMessageResponse, status_code=201)
async def create_admin_message(
    message_data: AdminMessageCreate,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Broadcast an announcement to all users"""
    return service.create_message(message_data, admin["id"])


@router.post("/messages/{message_id}/toggle", response_model=AdminMessageResponse)
async def toggle_admin_message(
    message_id: str,
    admin: Dict = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    return service.toggle_message(message_id, admin["id"])


@router.get("/reports/{report_type}")
async def download_report(
    report_type: ReportType,
    admin: Dict = Depends(require_admin),
    supabase: Client = Depends(get_user_supabase)
):
    """Stream a CSV report (users, skills or swaps)"""
    return StreamingResponse(
        stream_report(supabase, report_type),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(report_type)}"'},
    )


@announcements_router.get("", response_model=List[AdminMessageResponse])
async def list_announcements(
    user_data: Dict = Depends(get_current_user_id),
    service: AdminService = Depends(get_admin_service)
):
    """Active announcements, visible to every signed-in user"""
    return service.list_messages(active_only=True)

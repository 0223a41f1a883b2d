"""
Core dependencies for route protection and access checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import SupabaseClient, get_supabase, get_service_supabase
from app.modules.auth.service import AuthService
from app.modules.auth.role_resolver import RoleResolver, RoleResolution
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_user_supabase(token: str = Depends(get_current_token)) -> Client:
    """Supabase client acting as the caller; every query is subject to row-level policies."""
    return SupabaseClient.for_user(token)


def get_role_resolver(supabase: Client = Depends(get_user_supabase)) -> RoleResolver:
    return RoleResolver(supabase, service_supabase=get_service_supabase())


async def get_current_role(
    token: str = Depends(get_current_token),
    user_data: dict = Depends(get_current_user_id),
    resolver: RoleResolver = Depends(get_role_resolver)
) -> RoleResolution:
    """Resolve (or reuse the session's cached) role for the caller."""
    return await resolver.resolve(token, user_data)


async def require_admin(
    user_data: dict = Depends(get_current_user_id),
    resolution: RoleResolution = Depends(get_current_role)
) -> dict:
    """Sole gate for moderation endpoints: the caller must hold an admin role row."""
    if not resolution.is_admin:
        logger.info(f"Denied admin access to user {user_data['id']} (role: {resolution.role}, state: {resolution.state.value})")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return user_data


def check_request_participant(
    request_id: str,
    user_data: dict,
    supabase: Client,
    allow_admin: bool = False,
    is_admin: bool = False,
    skill_request: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Return the skill request row if the caller is its requester or provider (or an admin when allowed).

    Rows hidden by row-level policies are indistinguishable from missing ones and surface as 404.
    """
    if skill_request is None:
        result = supabase.table("skill_requests")\
            .select("*")\
            .eq("id", request_id)\
            .maybe_single()\
            .execute()
        if result is None or not result.data:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Skill request not found"
            )
        skill_request = result.data
    user_id = user_data["id"]
    if user_id in (skill_request.get("requester_id"), skill_request.get("provider_id")):
        return skill_request
    if allow_admin and is_admin:
        return skill_request
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You must be the requester or provider of this skill request"
    )

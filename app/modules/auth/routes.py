from fastapi import APIRouter, Depends
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, CurrentUserResponse
)
from app.modules.auth.service import AuthService, forget_token
from app.modules.auth.role_resolver import RoleResolution, RoleResolver, session_role_cache
from app.core.dependencies import (
    get_auth_service,
    get_current_token,
    get_current_user_id,
    get_current_role,
    get_user_supabase,
)
from app.database.supabase_client import SupabaseClient, get_service_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login, resolve the session's role once and return the access token"""
    token_response = service.login(login_data)
    user_data = service.get_current_user(token_response.access_token)
    resolver = RoleResolver(
        SupabaseClient.for_user(token_response.access_token),
        service_supabase=get_service_supabase(),
    )
    resolution = await resolver.resolve(token_response.access_token, user_data)
    token_response.role = resolution.role
    return token_response


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and drop the session's cached user and role"""
    session_role_cache.clear_session(token)
    forget_token(token)
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    resolution: RoleResolution = Depends(get_current_role),
    supabase: Client = Depends(get_user_supabase),
):
    """Get current authenticated user, their profile id and resolved role"""
    metadata = current_user.get("user_metadata") or {}
    profile = supabase.table("profiles")\
        .select("id")\
        .eq("user_id", current_user["id"])\
        .maybe_single()\
        .execute()
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        full_name=metadata.get("full_name"),
        profile_id=profile.data["id"] if profile is not None and profile.data else None,
        role=resolution.role,
        role_state=resolution.state.value,
    )

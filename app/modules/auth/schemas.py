from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal

Role = Literal["admin", "user"]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: Role = "user"


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    role: Role = "user"


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    profile_id: Optional[str] = None
    role: Role
    role_state: str

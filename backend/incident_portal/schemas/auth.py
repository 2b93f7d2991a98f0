from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    citizen = "citizen"
    authority = "authority"


class Principal(BaseModel):
    """Identity carried by a verified access token."""

    id: str
    email: Optional[str] = None
    role: Role


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Role] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ResetRequest(BaseModel):
    email: Optional[str] = None


class PasswordResetConfirm(BaseModel):
    token: Optional[str] = None
    password: Optional[str] = None


class UserSummary(BaseModel):
    id: str
    email: str
    full_name: str
    phone: Optional[str]
    role: Role

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserSummary
    token: str


class ResetRequestResponse(BaseModel):
    success: bool = True
    reset_url: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True

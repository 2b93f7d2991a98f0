from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from incident_portal.core import mailer
from incident_portal.core.config import settings
from incident_portal.core.database import get_db
from incident_portal.core.errors import Forbidden, Unauthorized
from incident_portal.core.security import decode_access_token
from incident_portal.schemas.auth import (
    AuthResponse,
    LoginRequest,
    PasswordResetConfirm,
    Principal,
    RegisterRequest,
    ResetRequest,
    ResetRequestResponse,
    SuccessResponse,
    UserSummary,
)
from incident_portal.services import accounts

router = APIRouter(prefix="/auth", tags=["auth"])

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None:
        raise Unauthorized("No token provided")
    payload = decode_access_token(credentials.credentials)
    return Principal(id=payload["sub"], email=payload.get("email"), role=payload["role"])


def require_role(*roles: str):
    async def check_role(current_user: Principal = Depends(get_current_user)) -> Principal:
        if current_user.role not in roles:
            raise Forbidden("Insufficient permissions")
        return current_user

    return check_role


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user, token = await accounts.register(
        db,
        email=user_in.email,
        password=user_in.password,
        full_name=user_in.full_name,
        phone=user_in.phone,
        role=user_in.role.value if user_in.role else None,
    )
    return AuthResponse(user=UserSummary.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
async def login(credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    user, token = await accounts.authenticate(db, credentials.email, credentials.password)
    return AuthResponse(user=UserSummary.model_validate(user), token=token)


@router.post("/request-reset", response_model=ResetRequestResponse)
async def request_reset(
    body: ResetRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """Always succeeds so the response never reveals which emails are registered."""
    ticket = await accounts.request_password_reset(db, body.email)
    if ticket.email:
        background_tasks.add_task(mailer.send_password_reset, ticket.email, ticket.token)
    reset_url = mailer.reset_link(ticket.token) if settings.EXPOSE_RESET_URL else None
    return ResetRequestResponse(success=True, reset_url=reset_url)


@router.post("/reset", response_model=SuccessResponse)
async def reset(body: PasswordResetConfirm, db: AsyncSession = Depends(get_db)):
    await accounts.reset_password(db, body.token, body.password)
    return SuccessResponse(success=True)

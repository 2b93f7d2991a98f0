"""Account directory: registration, login, profile lookup and password reset."""

import asyncio
import logging
import secrets
from datetime import timedelta
from typing import NamedTuple, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from incident_portal.core.config import settings
from incident_portal.core.database import transaction, utcnow
from incident_portal.core.errors import BadRequest, Conflict, InvalidToken, NotFound, Unauthorized
from incident_portal.core.security import create_access_token, get_password_hash, verify_password
from incident_portal.models.user import PasswordReset, Profile

logger = logging.getLogger(__name__)


class ResetTicket(NamedTuple):
    token: str
    # None when no account matched; the token was then never stored.
    email: Optional[str]


def issue_token(user: Profile) -> str:
    return create_access_token(data={"sub": user.id, "email": user.email, "role": user.role})


async def register(
    db: AsyncSession,
    email: Optional[str],
    password: Optional[str],
    full_name: Optional[str],
    phone: Optional[str] = None,
    role: Optional[str] = None,
) -> Tuple[Profile, str]:
    if not email or not password or not full_name:
        raise BadRequest("Missing required fields")

    # bcrypt is slow on purpose; keep it off the event loop and out of the transaction.
    password_hash = await asyncio.to_thread(get_password_hash, password)

    try:
        async with transaction(db):
            result = await db.execute(select(Profile.id).where(Profile.email == email))
            if result.scalar_one_or_none():
                raise Conflict("Email already registered")

            user = Profile(
                email=email,
                password_hash=password_hash,
                full_name=full_name,
                phone=phone or None,
                role=role or "citizen",
            )
            db.add(user)
    except IntegrityError as e:
        # Lost a race against a concurrent registration of the same email.
        raise Conflict("Email already registered") from e

    logger.info("Registered %s account %s", user.role, user.id)
    return user, issue_token(user)


async def authenticate(db: AsyncSession, email: Optional[str], password: Optional[str]) -> Tuple[Profile, str]:
    if not email or not password:
        raise BadRequest("Email and password required")

    result = await db.execute(select(Profile).where(Profile.email == email))
    user = result.scalar_one_or_none()
    if user is None or not await asyncio.to_thread(verify_password, password, user.password_hash):
        raise Unauthorized("Invalid credentials")
    return user, issue_token(user)


async def get_by_id(db: AsyncSession, user_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("Profile not found")
    return user


async def get_self(db: AsyncSession, user_id: str) -> Profile:
    return await get_by_id(db, user_id)


async def request_password_reset(db: AsyncSession, email: Optional[str]) -> ResetTicket:
    """Create a reset token for the account, if there is one.

    The caller gets a ticket either way so the response cannot reveal whether
    the email is registered.
    """
    if not email:
        raise BadRequest("Email required")

    token = secrets.token_urlsafe(32)
    async with transaction(db):
        result = await db.execute(select(Profile).where(Profile.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            return ResetTicket(token=token, email=None)
        db.add(
            PasswordReset(
                user_id=user.id,
                token=token,
                expires_at=utcnow() + timedelta(hours=settings.PASSWORD_RESET_TTL_HOURS),
            )
        )

    logger.info("Password reset requested for account %s", user.id)
    return ResetTicket(token=token, email=user.email)


async def reset_password(db: AsyncSession, token: Optional[str], new_password: Optional[str]):
    if not token or not new_password:
        raise BadRequest("Token and password required")

    password_hash = await asyncio.to_thread(get_password_hash, new_password)

    async with transaction(db):
        now = utcnow()
        result = await db.execute(
            select(PasswordReset)
            .where(
                PasswordReset.token == token,
                PasswordReset.used_at.is_(None),
                PasswordReset.expires_at > now,
            )
            .with_for_update()
        )
        reset = result.scalar_one_or_none()
        if reset is None:
            raise InvalidToken("Invalid or expired token")

        user = await get_by_id(db, reset.user_id)
        user.password_hash = password_hash
        user.updated_at = now
        reset.used_at = now

    logger.info("Password reset completed for account %s", reset.user_id)

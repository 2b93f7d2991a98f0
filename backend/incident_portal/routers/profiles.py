from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from incident_portal.core.database import get_db
from incident_portal.routers.auth import get_current_user
from incident_portal.schemas.auth import Principal
from incident_portal.schemas.profile import ProfileResponse, PublicProfile
from incident_portal.services import accounts

router = APIRouter(
    prefix="/profiles",
    tags=["profiles"],
    responses={404: {"description": "Not found"}},
)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await accounts.get_self(db, current_user.id)


@router.get("/{profile_id}", response_model=PublicProfile)
async def get_profile(
    profile_id: str,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await accounts.get_by_id(db, profile_id)

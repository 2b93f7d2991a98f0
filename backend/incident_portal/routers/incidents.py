from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from incident_portal.core.database import get_db
from incident_portal.routers.auth import get_current_user, require_role
from incident_portal.schemas.auth import Principal, SuccessResponse
from incident_portal.schemas.incident import (
    IncidentCreate,
    IncidentDetail,
    IncidentEdit,
    IncidentListItem,
    StatusUpdate,
)
from incident_portal.services import incidents as incident_register

router = APIRouter(
    prefix="/incidents",
    tags=["incidents"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=List[IncidentListItem])
async def get_incidents(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest first; citizens only see their own reports."""
    return await incident_register.list_incidents(db, current_user)


@router.get("/{incident_id}", response_model=IncidentDetail)
async def get_incident(
    incident_id: str,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await incident_register.get_incident(db, current_user, incident_id)


@router.post("", response_model=IncidentDetail, status_code=status.HTTP_201_CREATED)
async def create_incident(
    incident_in: IncidentCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await incident_register.create_incident(db, current_user, incident_in)


@router.put("/{incident_id}", response_model=IncidentDetail)
async def edit_incident(
    incident_id: str,
    incident_in: IncidentEdit,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await incident_register.edit_incident(db, current_user, incident_id, incident_in)


@router.delete("/{incident_id}", response_model=SuccessResponse)
async def delete_incident(
    incident_id: str,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await incident_register.remove_incident(db, current_user, incident_id)
    return SuccessResponse(success=True)


@router.patch("/{incident_id}", response_model=IncidentDetail)
async def update_incident_status(
    incident_id: str,
    update_in: StatusUpdate,
    current_user: Principal = Depends(require_role("authority")),
    db: AsyncSession = Depends(get_db),
):
    return await incident_register.update_status(db, current_user, incident_id, update_in)

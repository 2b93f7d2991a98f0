from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from incident_portal.core.database import get_db
from incident_portal.routers.auth import get_current_user
from incident_portal.schemas.auth import Principal
from incident_portal.schemas.category import CategoryResponse
from incident_portal.services.categories import list_categories

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[CategoryResponse])
async def get_categories(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await list_categories(db)

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_portal.models.category import Category


async def list_categories(db: AsyncSession) -> List[Category]:
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())

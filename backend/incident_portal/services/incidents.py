"""Incident register.

Owns the incident lifecycle: role-scoped listing, detail lookup, citizen
create/edit/delete while an incident is still pending, and authority status
changes recorded in the append-only ``incident_updates`` trail.

Every mutation that touches more than one row runs inside a single
``transaction()`` block, so a failure part way through leaves nothing behind.
Any authority may act on any incident; there is no ownership check on
status updates.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from incident_portal.core.database import transaction, utcnow
from incident_portal.core.errors import BadRequest, Forbidden, InvalidState, NotFound
from incident_portal.models.category import Category
from incident_portal.models.incident import (
    TERMINAL_STATUSES,
    Incident,
    IncidentImage,
    IncidentUpdate,
    IncidentVideo,
)
from incident_portal.models.user import Profile
from incident_portal.schemas.auth import Principal
from incident_portal.schemas.incident import (
    IncidentCreate,
    IncidentDetail,
    IncidentEdit,
    IncidentImageResponse,
    IncidentListItem,
    IncidentUpdateResponse,
    IncidentVideoResponse,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

LIST_LIMIT = 100

# Columns a citizen may change while the incident is pending.
REQUIRED_EDIT_FIELDS = ("category_id", "title", "description", "incident_date")
OPTIONAL_EDIT_FIELDS = ("latitude", "longitude", "address", "priority")


def not_deleted():
    """The one place the soft-delete marker is interpreted."""
    return Incident.deleted_at.is_(None)


def _joined():
    return (
        select(Incident, Category.name, Category.color, Profile.full_name, Profile.email)
        .join(Category, Incident.category_id == Category.id)
        .join(Profile, Incident.user_id == Profile.id)
    )


def _row_fields(row) -> dict:
    incident, category_name, category_color, full_name, email = tuple(row)[:5]
    data = {column.key: getattr(incident, column.key) for column in Incident.__table__.columns}
    data.update(
        category_name=category_name,
        category_color=category_color,
        full_name=full_name,
        email=email,
    )
    return data


def _normalize_date(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_coordinates(latitude: Optional[float], longitude: Optional[float]):
    if (latitude is None) != (longitude is None):
        raise BadRequest("latitude and longitude must be provided together")


async def _check_category(db: AsyncSession, category_id: str):
    result = await db.execute(select(Category.id).where(Category.id == category_id))
    if result.scalar_one_or_none() is None:
        raise BadRequest("Unknown category")


def _add_media(db: AsyncSession, incident_id: str, images: List[str], videos: List[str]):
    now = utcnow()
    for position, url in enumerate(images):
        db.add(IncidentImage(incident_id=incident_id, image_url=url, position=position, uploaded_at=now))
    for position, url in enumerate(videos):
        db.add(IncidentVideo(incident_id=incident_id, video_url=url, position=position, uploaded_at=now))


async def _record_update(
    db: AsyncSession,
    incident_id: str,
    user_id: str,
    old_status: str,
    new_status: str,
    comment: Optional[str],
) -> IncidentUpdate:
    entry = IncidentUpdate(
        incident_id=incident_id,
        user_id=user_id,
        old_status=old_status,
        new_status=new_status,
        comment=comment,
    )
    db.add(entry)
    await db.flush()
    return entry


async def _load_detail(db: AsyncSession, incident_id: str, include_deleted: bool = True) -> IncidentDetail:
    stmt = _joined().where(Incident.id == incident_id)
    if not include_deleted:
        stmt = stmt.where(not_deleted())
    row = (await db.execute(stmt)).first()
    if row is None:
        raise NotFound("Incident not found")

    images = await db.execute(
        select(IncidentImage)
        .where(IncidentImage.incident_id == incident_id)
        .order_by(IncidentImage.uploaded_at, IncidentImage.position)
    )
    videos = await db.execute(
        select(IncidentVideo)
        .where(IncidentVideo.incident_id == incident_id)
        .order_by(IncidentVideo.uploaded_at, IncidentVideo.position)
    )
    updates = await db.execute(
        select(IncidentUpdate)
        .where(IncidentUpdate.incident_id == incident_id)
        .order_by(IncidentUpdate.created_at)
    )
    return IncidentDetail(
        **_row_fields(row),
        images=[IncidentImageResponse.model_validate(i) for i in images.scalars()],
        videos=[IncidentVideoResponse.model_validate(v) for v in videos.scalars()],
        updates=[IncidentUpdateResponse.model_validate(u) for u in updates.scalars()],
    )


async def _get_modifiable(db: AsyncSession, requester: Principal, incident_id: str) -> Incident:
    result = await db.execute(
        select(Incident).where(Incident.id == incident_id, not_deleted()).with_for_update()
    )
    incident = result.scalar_one_or_none()
    if incident is None:
        raise NotFound("Incident not found")
    if incident.status != "pending":
        raise InvalidState("Only pending incidents can be modified")
    if incident.user_id != requester.id:
        raise Forbidden("You can only modify your own incidents")
    return incident


async def list_incidents(db: AsyncSession, requester: Principal) -> List[IncidentListItem]:
    latest_image = (
        select(IncidentImage.image_url)
        .where(IncidentImage.incident_id == Incident.id)
        .order_by(IncidentImage.uploaded_at.desc(), IncidentImage.position.desc())
        .limit(1)
        .correlate(Incident)
        .scalar_subquery()
    )
    latest_video = (
        select(IncidentVideo.video_url)
        .where(IncidentVideo.incident_id == Incident.id)
        .order_by(IncidentVideo.uploaded_at.desc(), IncidentVideo.position.desc())
        .limit(1)
        .correlate(Incident)
        .scalar_subquery()
    )

    stmt = _joined().add_columns(latest_image, latest_video).where(not_deleted())
    if requester.role == "citizen":
        stmt = stmt.where(Incident.user_id == requester.id)
    stmt = stmt.order_by(Incident.created_at.desc()).limit(LIST_LIMIT)

    result = await db.execute(stmt)
    return [
        IncidentListItem(**_row_fields(row), preview_image_url=row[5], preview_video_url=row[6])
        for row in result.all()
    ]


async def get_incident(db: AsyncSession, requester: Principal, incident_id: str) -> IncidentDetail:
    # Detail lookups are not owner-filtered; citizens only lose sight of deleted rows.
    return await _load_detail(db, incident_id, include_deleted=requester.role != "citizen")


async def create_incident(db: AsyncSession, requester: Principal, data: IncidentCreate) -> IncidentDetail:
    if not data.category_id or not data.title or not data.description or data.incident_date is None:
        raise BadRequest("Missing required fields")
    _check_coordinates(data.latitude, data.longitude)

    async with transaction(db):
        await _check_category(db, data.category_id)
        now = utcnow()
        incident = Incident(
            user_id=requester.id,
            category_id=data.category_id,
            title=data.title,
            description=data.description,
            latitude=data.latitude,
            longitude=data.longitude,
            address=data.address or None,
            status="pending",
            priority=data.priority.value if data.priority else "medium",
            incident_date=_normalize_date(data.incident_date),
            created_at=now,
            updated_at=now,
        )
        db.add(incident)
        await db.flush()
        _add_media(db, incident.id, data.images or [], data.videos or [])

    logger.info("Incident %s created by %s", incident.id, requester.id)
    return await _load_detail(db, incident.id)


async def edit_incident(
    db: AsyncSession, requester: Principal, incident_id: str, data: IncidentEdit
) -> IncidentDetail:
    changes = data.model_dump(exclude_unset=True)
    # An explicit null priority means "leave it as is".
    if changes.get("priority", "") is None:
        del changes["priority"]
    images = changes.pop("images", None)
    videos = changes.pop("videos", None)

    for field in REQUIRED_EDIT_FIELDS:
        if field in changes and not changes[field]:
            raise BadRequest(f"{field} cannot be empty")

    async with transaction(db):
        incident = await _get_modifiable(db, requester, incident_id)

        if "category_id" in changes:
            await _check_category(db, changes["category_id"])
        _check_coordinates(
            changes.get("latitude", incident.latitude),
            changes.get("longitude", incident.longitude),
        )

        for field in REQUIRED_EDIT_FIELDS + OPTIONAL_EDIT_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field == "incident_date":
                value = _normalize_date(value)
            elif field == "priority":
                value = value.value
            elif field == "address":
                value = value or None
            setattr(incident, field, value)
        incident.updated_at = utcnow()

        # Media collections are replaced wholesale, never diffed.
        if images is not None:
            await db.execute(delete(IncidentImage).where(IncidentImage.incident_id == incident_id))
        if videos is not None:
            await db.execute(delete(IncidentVideo).where(IncidentVideo.incident_id == incident_id))
        _add_media(db, incident_id, images or [], videos or [])

    logger.info("Incident %s edited by %s", incident_id, requester.id)
    return await _load_detail(db, incident_id)


async def remove_incident(db: AsyncSession, requester: Principal, incident_id: str):
    async with transaction(db):
        incident = await _get_modifiable(db, requester, incident_id)
        now = utcnow()
        incident.deleted_at = now
        incident.updated_at = now
    logger.info("Incident %s deleted by %s", incident_id, requester.id)


async def update_status(
    db: AsyncSession, requester: Principal, incident_id: str, data: StatusUpdate
) -> IncidentDetail:
    """Apply an authority's status/priority change and log it, atomically."""
    async with transaction(db):
        result = await db.execute(
            select(Incident).where(Incident.id == incident_id, not_deleted()).with_for_update()
        )
        incident = result.scalar_one_or_none()
        if incident is None:
            raise NotFound("Incident not found")

        old_status = incident.status
        now = utcnow()

        if data.status is not None:
            # Re-applying the current status is allowed and refreshes resolution.
            incident.status = data.status.value
            if incident.status in TERMINAL_STATUSES:
                incident.resolved_at = now
                incident.resolved_by = requester.id
            else:
                incident.resolved_at = None
                incident.resolved_by = None
            incident.updated_at = now

        if data.priority is not None:
            incident.priority = data.priority.value
            incident.updated_at = now

        await db.flush()

        if data.comment or data.status is not None:
            await _record_update(
                db,
                incident_id,
                requester.id,
                old_status,
                data.status.value if data.status is not None else old_status,
                data.comment or None,
            )

    logger.info(
        "Incident %s updated by %s: %s -> %s",
        incident_id,
        requester.id,
        old_status,
        data.status.value if data.status is not None else old_status,
    )
    return await _load_detail(db, incident_id)

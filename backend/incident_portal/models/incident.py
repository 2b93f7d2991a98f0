from sqlalchemy import Column, Float, ForeignKey, Integer, String, Text

from incident_portal.core.database import Base, UtcDateTime, new_id, utcnow

TERMINAL_STATUSES = ("resolved", "rejected")


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("incident_categories.id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    address = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, in_progress, resolved, rejected
    priority = Column(String(20), nullable=False, default="medium")  # low, medium, high, urgent
    incident_date = Column(UtcDateTime(), nullable=False)
    created_at = Column(UtcDateTime(), default=utcnow, nullable=False, index=True)
    updated_at = Column(UtcDateTime(), default=utcnow, nullable=False)
    resolved_at = Column(UtcDateTime(), nullable=True)
    resolved_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    deleted_at = Column(UtcDateTime(), nullable=True)


class IncidentImage(Base):
    __tablename__ = "incident_images"

    id = Column(String(36), primary_key=True, default=new_id)
    incident_id = Column(String(36), ForeignKey("incidents.id"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(UtcDateTime(), default=utcnow, nullable=False)


class IncidentVideo(Base):
    __tablename__ = "incident_videos"

    id = Column(String(36), primary_key=True, default=new_id)
    incident_id = Column(String(36), ForeignKey("incidents.id"), nullable=False, index=True)
    video_url = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(UtcDateTime(), default=utcnow, nullable=False)


class IncidentUpdate(Base):
    """Append-only audit record of a status change or authority comment."""

    __tablename__ = "incident_updates"

    id = Column(String(36), primary_key=True, default=new_id)
    incident_id = Column(String(36), ForeignKey("incidents.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(UtcDateTime(), default=utcnow, nullable=False)

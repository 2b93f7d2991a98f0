from sqlalchemy import Column, String, Text

from incident_portal.core.database import Base, UtcDateTime, new_id, utcnow


class Category(Base):
    __tablename__ = "incident_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=False, default="#6b7280")
    created_at = Column(UtcDateTime(), default=utcnow, nullable=False)

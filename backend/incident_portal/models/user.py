from sqlalchemy import Column, ForeignKey, String

from incident_portal.core.database import Base, UtcDateTime, new_id, utcnow


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default="citizen")  # citizen, authority
    created_at = Column(UtcDateTime(), default=utcnow, nullable=False)
    updated_at = Column(UtcDateTime(), default=utcnow, onupdate=utcnow, nullable=False)


class PasswordReset(Base):
    __tablename__ = "password_resets"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    token = Column(String(128), unique=True, index=True, nullable=False)
    expires_at = Column(UtcDateTime(), nullable=False)
    created_at = Column(UtcDateTime(), default=utcnow, nullable=False)
    used_at = Column(UtcDateTime(), nullable=True)  # set once, when consumed

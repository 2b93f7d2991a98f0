from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .auth import Role


class PublicProfile(BaseModel):
    id: str
    email: str
    full_name: str
    phone: Optional[str]
    role: Role
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileResponse(PublicProfile):
    updated_at: datetime

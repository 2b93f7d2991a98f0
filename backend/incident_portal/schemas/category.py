from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    color: str
    created_at: datetime

    class Config:
        from_attributes = True

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class IncidentStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    resolved = "resolved"
    rejected = "rejected"


class IncidentPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class IncidentCreate(BaseModel):
    # Presence of the required fields is checked by the register so that a
    # missing field is reported as one "Missing required fields" error.
    category_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    incident_date: Optional[datetime] = None
    priority: Optional[IncidentPriority] = None
    images: Optional[List[str]] = None
    videos: Optional[List[str]] = None


class IncidentEdit(BaseModel):
    category_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    incident_date: Optional[datetime] = None
    priority: Optional[IncidentPriority] = None
    images: Optional[List[str]] = None
    videos: Optional[List[str]] = None


class StatusUpdate(BaseModel):
    status: Optional[IncidentStatus] = None
    priority: Optional[IncidentPriority] = None
    comment: Optional[str] = None


class IncidentImageResponse(BaseModel):
    id: str
    incident_id: str
    image_url: str
    uploaded_at: datetime

    class Config:
        from_attributes = True


class IncidentVideoResponse(BaseModel):
    id: str
    incident_id: str
    video_url: str
    uploaded_at: datetime

    class Config:
        from_attributes = True


class IncidentUpdateResponse(BaseModel):
    id: str
    incident_id: str
    user_id: str
    old_status: Optional[str]
    new_status: str
    comment: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class IncidentResponse(BaseModel):
    id: str
    user_id: str
    category_id: str
    title: str
    description: str
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str]
    status: IncidentStatus
    priority: IncidentPriority
    incident_date: datetime
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime]
    resolved_by: Optional[str]
    deleted_at: Optional[datetime] = None

    # Related data
    category_name: str
    category_color: str
    full_name: str
    email: str


class IncidentListItem(IncidentResponse):
    # Most recently uploaded image and video, for list thumbnails.
    preview_image_url: Optional[str] = None
    preview_video_url: Optional[str] = None


class IncidentDetail(IncidentResponse):
    images: List[IncidentImageResponse] = []
    videos: List[IncidentVideoResponse] = []
    updates: List[IncidentUpdateResponse] = []

import uuid
from datetime import datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field

from staydesk.models.property import PropertyStatus


class ICalLink(BaseModel):
    name: Optional[str] = None
    url: str


class PropertyCreate(BaseModel):
    client_id: uuid.UUID
    name: str = Field(max_length=50)
    description: Optional[str] = None
    type: Optional[str] = Field(default=None, max_length=50)
    place_name: Optional[str] = Field(default=None, max_length=255)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    ical_links: List[ICalLink] = []


class PropertyStatusUpdate(BaseModel):
    status: str


class PropertyOut(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    hash_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    type: Optional[str] = None
    place_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    capacity: Optional[int] = None
    check_in_time: Optional[time] = None
    check_out_time: Optional[time] = None
    ical_links: Optional[List[ICalLink]] = None
    status: PropertyStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ICalFetchRequest(BaseModel):
    url: str


class ICalSyncResults(BaseModel):
    successful: int
    failed: int
    total: int


class ICalSyncOut(BaseModel):
    message: str
    results: Optional[ICalSyncResults] = None

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from staydesk.models.assignment import AssignmentStatus
from staydesk.models.property import PropertyStatus


class AssignConcierge(BaseModel):
    client_id: uuid.UUID
    concierge_id: uuid.UUID
    property_id: uuid.UUID


class UnassignConcierge(AssignConcierge):
    pass


class AssignmentStatusUpdate(BaseModel):
    status: str


class AssignmentOut(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    concierge_id: uuid.UUID
    property_id: uuid.UUID
    status: AssignmentStatus
    assigned_at: datetime

    class Config:
        from_attributes = True


class AssignedPropertyBrief(BaseModel):
    id: uuid.UUID
    name: str
    status: AssignmentStatus
    assigned_at: Optional[datetime] = None


class ConciergeOut(BaseModel):
    id: uuid.UUID
    firstname: str
    lastname: str
    email: str
    phone: Optional[str] = None
    properties: List[AssignedPropertyBrief] = []


class ManagedPropertyBrief(BaseModel):
    id: uuid.UUID
    hash_id: Optional[str] = None
    name: str
    type: Optional[str] = None
    place_name: Optional[str] = None
    status: PropertyStatus
    updated_at: datetime

    class Config:
        from_attributes = True


class ConciergePropertyOut(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    status: AssignmentStatus
    assigned_at: datetime
    property: ManagedPropertyBrief

    class Config:
        from_attributes = True

"""
Reservation Schemas
One input model per write operation; only the listed fields are writable.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, Field

from staydesk.models.reservation import ReservationStatus


def _coerce_lock_code(v: Any) -> Optional[str]:
    # Lock codes may arrive as JSON numbers; keep them as digit strings.
    if v is None or v == "":
        return None
    return str(v)


LockCode = Annotated[Optional[str], BeforeValidator(_coerce_lock_code)]


class ReservationCreate(BaseModel):
    property_id: uuid.UUID
    start_date: date
    end_date: date
    total_price: float = Field(ge=0)
    booking_source: Optional[str] = Field(default=None, max_length=50)
    created_by_user_id: Optional[uuid.UUID] = None
    electronic_lock_enabled: bool = False
    electronic_lock_code: LockCode = None
    calendar_event_uid: Optional[str] = Field(default=None, max_length=190)


class ReservationStatusUpdate(BaseModel):
    status: str
    # Administrative escape hatch around the transition table
    override: bool = False


class ElectronicLockUpdate(BaseModel):
    electronic_lock_enabled: bool
    electronic_lock_code: LockCode = None


class ReservationRevenueCreate(BaseModel):
    amount: float = Field(ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)
    created_by: Optional[uuid.UUID] = None


class ReservationOut(BaseModel):
    id: uuid.UUID
    hash_id: str
    property_id: uuid.UUID
    created_by_user_id: uuid.UUID
    start_date: date
    end_date: date
    total_price: float
    booking_source: Optional[str] = None
    status: ReservationStatus
    electronic_lock_enabled: bool
    electronic_lock_code: Optional[str] = None
    calendar_event_uid: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReservationStatusOut(BaseModel):
    message: str
    reservation: ReservationOut


class ConflictingReservation(BaseModel):
    id: uuid.UUID
    start_date: date
    end_date: date
    status: ReservationStatus

    class Config:
        from_attributes = True


class AvailabilityOut(BaseModel):
    available: bool
    property_id: uuid.UUID
    start_date: date
    end_date: date
    conflicting_reservations: List[ConflictingReservation] = []


class SendToGuestOut(BaseModel):
    message: str
    contract_form_url: str


class ElectronicLockOut(BaseModel):
    success: bool = True
    message: str
    electronic_lock_enabled: bool
    electronic_lock_code: Optional[str] = None


class CalendarUidOut(BaseModel):
    exists: bool
    reservation_id: Optional[uuid.UUID] = None

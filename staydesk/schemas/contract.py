"""
Reservation Contract Schemas
"""
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field

from staydesk.models.contract import ContractStatus, DocumentType, Sex
from staydesk.models.reservation import ReservationStatus


class GuestFields(BaseModel):
    """Guest-identity fields writable by the host or the guest form."""
    firstname: Optional[str] = Field(default=None, max_length=50)
    lastname: Optional[str] = Field(default=None, max_length=50)
    middlename: Optional[str] = Field(default=None, max_length=50)
    birth_date: Optional[date] = None
    sex: Optional[Sex] = None
    nationality: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    residence_country: Optional[str] = Field(default=None, max_length=50)
    residence_city: Optional[str] = Field(default=None, max_length=50)
    residence_address: Optional[str] = Field(default=None, max_length=200)
    residence_postal_code: Optional[str] = Field(default=None, max_length=20)
    document_type: Optional[DocumentType] = None
    document_number: Optional[str] = Field(default=None, max_length=50)
    document_issue_date: Optional[date] = None
    signature_image_url: Optional[str] = Field(default=None, max_length=500)


class ContractCreate(GuestFields):
    reservation_id: uuid.UUID


class ContractUpdate(GuestFields):
    """Partial update of guest fields; status has its own endpoint."""
    pass


class ContractStatusUpdate(BaseModel):
    status: str


class ContractOut(GuestFields):
    id: uuid.UUID
    reservation_id: uuid.UUID
    property_id: uuid.UUID
    hash_id: str
    status: ContractStatus
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    signed_at: Optional[datetime] = None
    signing_ip_address: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReservationLockInfo(BaseModel):
    id: uuid.UUID
    start_date: date
    end_date: date
    electronic_lock_enabled: bool
    electronic_lock_code: Optional[str] = None

    class Config:
        from_attributes = True


class GuestContractOut(ContractOut):
    """Contract as loaded by the guest through its public token."""
    reservation: Optional[ReservationLockInfo] = None


class ContractDetailsOut(BaseModel):
    property_name: Optional[str] = None
    property_place_name: Optional[str] = None
    check_in_date: Optional[date] = None
    check_in_time: Optional[time] = None
    check_out_date: Optional[date] = None
    check_out_time: Optional[time] = None
    capacity: Optional[int] = None
    guest_firstname: Optional[str] = None
    guest_lastname: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    booking_source: Optional[str] = None
    reservation_status: Optional[ReservationStatus] = None
    contract_generation_link: Optional[str] = None
    total_price: Optional[float] = None


class ConflictingBooking(BaseModel):
    check_in: date
    check_out: date
    status: ReservationStatus
    guest: str = ""


class ContractAvailabilityOut(BaseModel):
    property_id: uuid.UUID
    start_date: date
    end_date: date
    available: bool
    conflicting_bookings: List[ConflictingBooking] = []
    total_conflicts: int = 0

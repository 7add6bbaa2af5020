# Import all models in dependency order so every table is registered with Base
from staydesk.models.user import User, UserRole
from staydesk.models.property import Property, PropertyStatus
from staydesk.models.reservation import Reservation, ReservationStatus, INACTIVE_RESERVATION_STATUSES
from staydesk.models.contract import (
    ReservationContract, ContractStatus, Sex, DocumentType,
    REQUIRED_GUEST_FIELDS, FINALIZING_STATUSES,
)
from staydesk.models.revenue import PropertyRevenue
from staydesk.models.assignment import UserProperty, AssignmentStatus

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyStatus",
    "Reservation",
    "ReservationStatus",
    "INACTIVE_RESERVATION_STATUSES",
    "ReservationContract",
    "ContractStatus",
    "Sex",
    "DocumentType",
    "REQUIRED_GUEST_FIELDS",
    "FINALIZING_STATUSES",
    "PropertyRevenue",
    "UserProperty",
    "AssignmentStatus",
]

"""
Availability checking over a property calendar.

This module is the single authority on whether a date range is free: the
reservation endpoints, the contract availability query and the state
machines all ask it. Ranges are inclusive on both ends, so a stay ending on
the 7th conflicts with one starting on the 7th.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from staydesk.core.exceptions import BookingError, ConflictError, NotFoundError
from staydesk.models.property import Property
from staydesk.models.reservation import Reservation, INACTIVE_RESERVATION_STATUSES

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    available: bool
    conflicts: List[Reservation] = field(default_factory=list)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and a_end >= b_start


def validate_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise BookingError("end_date must not be before start_date")


def lock_property(db: Session, property_id: uuid.UUID) -> Property:
    """
    Load the property row FOR UPDATE.

    Guards call this before reading the rows they protect so that two
    requests against the same property serialize on it.
    """
    prop = (
        db.query(Property)
        .filter(Property.id == property_id)
        .with_for_update()
        .first()
    )
    if prop is None:
        raise NotFoundError("Property")
    return prop


def find_conflicts(
    db: Session,
    property_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_reservation_id: Optional[uuid.UUID] = None,
) -> List[Reservation]:
    q = db.query(Reservation).filter(
        Reservation.property_id == property_id,
        Reservation.status.notin_(INACTIVE_RESERVATION_STATUSES),
        Reservation.start_date <= end_date,
        Reservation.end_date >= start_date,
    )
    if exclude_reservation_id is not None:
        q = q.filter(Reservation.id != exclude_reservation_id)
    return q.order_by(Reservation.start_date).all()


def check_availability(
    db: Session,
    property_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_reservation_id: Optional[uuid.UUID] = None,
) -> AvailabilityResult:
    validate_range(start_date, end_date)
    conflicts = find_conflicts(db, property_id, start_date, end_date, exclude_reservation_id)
    return AvailabilityResult(available=not conflicts, conflicts=conflicts)


def conflict_to_dict(reservation: Reservation) -> Dict[str, Any]:
    return {
        "id": str(reservation.id),
        "hash_id": reservation.hash_id,
        "start_date": reservation.start_date.isoformat(),
        "end_date": reservation.end_date.isoformat(),
        "status": reservation.status.value,
    }


def ensure_available(
    db: Session,
    property_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_reservation_id: Optional[uuid.UUID] = None,
    message: str = "Selected dates are not available",
) -> None:
    result = check_availability(db, property_id, start_date, end_date, exclude_reservation_id)
    if result.available:
        return
    logger.warning(
        f"[AVAILABILITY] Property {property_id} {start_date}..{end_date} "
        f"conflicts with {len(result.conflicts)} reservation(s)"
    )
    raise ConflictError(
        message,
        conflicts=[conflict_to_dict(r) for r in result.conflicts],
        conflicts_key="conflicting_reservations",
    )

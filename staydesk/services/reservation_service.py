"""
Reservation Service - booking lifecycle.

Status moves along draft -> sent -> signed -> confirmed; any non-terminal
state may be cancelled. Administrators can step outside the table with
``override=True``, but a reservation never becomes active (sent, signed,
confirmed) without passing the availability check.
"""
import logging
import re
import uuid
from datetime import date
from typing import Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy.orm import Session

from staydesk.core.config import settings
from staydesk.core.exceptions import (
    BookingError, ConflictError, InvalidStatusError, InvalidTransitionError, NotFoundError,
)
from staydesk.models.assignment import UserProperty, AssignmentStatus
from staydesk.models.contract import ReservationContract, ContractStatus, DocumentType, Sex
from staydesk.models.reservation import Reservation, ReservationStatus, INACTIVE_RESERVATION_STATUSES
from staydesk.models.user import User
from staydesk.schemas.reservation import ReservationCreate
from staydesk.services.availability import ensure_available, lock_property, validate_range
from staydesk.services.identifiers import allocate_public_id
from staydesk.services.uow import unit_of_work

logger = logging.getLogger(__name__)

RESERVATION_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.DRAFT: frozenset({ReservationStatus.SENT, ReservationStatus.CANCELLED}),
    ReservationStatus.SENT: frozenset({ReservationStatus.SIGNED, ReservationStatus.CANCELLED}),
    ReservationStatus.SIGNED: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
}

# Forward path walked by contract-driven status changes.
_FORWARD_PATH = (
    ReservationStatus.DRAFT,
    ReservationStatus.SENT,
    ReservationStatus.SIGNED,
    ReservationStatus.CONFIRMED,
)

_LOCK_CODE_RE = re.compile(r"[0-9]+")
MAX_LOCK_CODE_DIGITS = 10


def parse_reservation_status(value, current: Optional[ReservationStatus] = None) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        raise InvalidStatusError(
            value, [s.value for s in ReservationStatus], current.value if current else None
        )


def normalize_lock_code(enabled: bool, code: Optional[str]) -> Optional[str]:
    """Return the code to store; disabled locks never keep a code."""
    if not enabled or code is None:
        return None
    if not _LOCK_CODE_RE.fullmatch(code):
        raise BookingError("Electronic lock code must contain only digits")
    if len(code) > MAX_LOCK_CODE_DIGITS:
        raise BookingError(f"Electronic lock code must not exceed {MAX_LOCK_CODE_DIGITS} digits")
    return code


# ─────────────────────── Queries ───────────────────────

def get_reservation(db: Session, reservation_id: uuid.UUID) -> Reservation:
    reservation = db.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFoundError("Reservation")
    return reservation


def get_reservation_by_hash(db: Session, hash_id: str) -> Reservation:
    reservation = db.query(Reservation).filter(Reservation.hash_id == hash_id).first()
    if reservation is None:
        raise NotFoundError("Reservation")
    return reservation


def list_reservations(
    db: Session,
    property_id: Optional[uuid.UUID] = None,
    status: Optional[ReservationStatus] = None,
    skip: int = 0,
    limit: Optional[int] = 100,
) -> List[Reservation]:
    q = db.query(Reservation)
    if property_id is not None:
        q = q.filter(Reservation.property_id == property_id)
    if status is not None:
        q = q.filter(Reservation.status == status)
    return q.order_by(Reservation.start_date.desc()).offset(skip).limit(limit).all()


def list_client_reservations(db: Session, client_id: uuid.UUID) -> List[Reservation]:
    return (
        db.query(Reservation)
        .filter(Reservation.created_by_user_id == client_id)
        .order_by(Reservation.start_date.desc())
        .all()
    )


def list_concierge_reservations(db: Session, concierge_id: uuid.UUID) -> List[Reservation]:
    """Reservations on every property the concierge is actively assigned to."""
    property_ids = [
        row.property_id
        for row in db.query(UserProperty.property_id).filter(
            UserProperty.concierge_id == concierge_id,
            UserProperty.status == AssignmentStatus.ACTIVE,
        )
    ]
    if not property_ids:
        return []
    return (
        db.query(Reservation)
        .filter(Reservation.property_id.in_(property_ids))
        .order_by(Reservation.start_date.desc())
        .all()
    )


def find_by_calendar_uid(db: Session, uid: str) -> Optional[Reservation]:
    return db.query(Reservation).filter(Reservation.calendar_event_uid == uid).first()


# ─────────────────────── State machine ───────────────────────

def _apply_status(
    db: Session,
    reservation: Reservation,
    new_status: ReservationStatus,
    override: bool = False,
) -> bool:
    """
    Move ``reservation`` to ``new_status`` without committing.

    Returns False when the reservation already has that status.
    """
    current = reservation.status
    if new_status == current:
        return False

    if not override and new_status not in RESERVATION_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, new_status.value)

    if current in INACTIVE_RESERVATION_STATUSES and new_status not in INACTIVE_RESERVATION_STATUSES:
        ensure_available(
            db,
            reservation.property_id,
            reservation.start_date,
            reservation.end_date,
            exclude_reservation_id=reservation.id,
            message="Cannot update status due to date conflict with existing reservations",
        )

    reservation.status = new_status
    logger.info(
        f"[RESERVATION] {reservation.id} {current.value} -> {new_status.value}"
        + (" (override)" if override else "")
    )
    return True


def advance_reservation(db: Session, reservation: Reservation, target: ReservationStatus) -> None:
    """
    Walk the reservation forward to ``target`` one legal step at a time.

    A reservation already at or past ``target`` is left alone; a cancelled
    one cannot be advanced.
    """
    if reservation.status == ReservationStatus.CANCELLED:
        raise InvalidTransitionError(reservation.status.value, target.value)
    current_idx = _FORWARD_PATH.index(reservation.status)
    target_idx = _FORWARD_PATH.index(target)
    for step in _FORWARD_PATH[current_idx + 1:target_idx + 1]:
        _apply_status(db, reservation, step)


def update_reservation_status(
    db: Session,
    reservation_id: uuid.UUID,
    status,
    override: bool = False,
) -> Reservation:
    reservation = get_reservation(db, reservation_id)
    new_status = parse_reservation_status(status, reservation.status)

    with unit_of_work(db):
        lock_property(db, reservation.property_id)
        db.refresh(reservation)
        _apply_status(db, reservation, new_status, override=override)

    return reservation


# ─────────────────────── Commands ───────────────────────

def create_reservation(db: Session, payload: ReservationCreate, creator_id: uuid.UUID) -> Reservation:
    validate_range(payload.start_date, payload.end_date)
    lock_code = normalize_lock_code(payload.electronic_lock_enabled, payload.electronic_lock_code)

    with unit_of_work(db):
        lock_property(db, payload.property_id)

        if db.get(User, creator_id) is None:
            raise NotFoundError("User")

        if payload.calendar_event_uid:
            existing = find_by_calendar_uid(db, payload.calendar_event_uid)
            if existing is not None:
                raise ConflictError(
                    "A reservation already exists for this calendar event",
                    conflicts=[{"id": str(existing.id), "calendar_event_uid": existing.calendar_event_uid}],
                    conflicts_key="conflicting_reservations",
                )

        ensure_available(db, payload.property_id, payload.start_date, payload.end_date)

        reservation = Reservation(
            id=uuid.uuid4(),
            property_id=payload.property_id,
            created_by_user_id=creator_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            total_price=payload.total_price,
            booking_source=payload.booking_source,
            status=ReservationStatus.DRAFT,
            hash_id=allocate_public_id(db, Reservation),
            electronic_lock_enabled=payload.electronic_lock_enabled,
            electronic_lock_code=lock_code,
            calendar_event_uid=payload.calendar_event_uid,
        )
        db.add(reservation)
        db.flush()

    logger.info(
        f"[RESERVATION] Created {reservation.id} on property {reservation.property_id} "
        f"({reservation.start_date}..{reservation.end_date}) by {creator_id}"
    )
    return reservation


def generate_contract(db: Session, reservation_id: uuid.UUID) -> Tuple[ReservationContract, bool]:
    """Return the reservation's contract, creating a DRAFT one if missing."""
    reservation = get_reservation(db, reservation_id)
    if reservation.contract is not None:
        return reservation.contract, False

    with unit_of_work(db):
        contract = ReservationContract(
            id=uuid.uuid4(),
            reservation_id=reservation.id,
            property_id=reservation.property_id,
            check_in_date=reservation.start_date,
            check_out_date=reservation.end_date,
            status=ContractStatus.DRAFT,
            hash_id=allocate_public_id(db, ReservationContract),
        )
        db.add(contract)
        db.flush()

    logger.info(f"[RESERVATION] Generated contract {contract.id} for reservation {reservation.id}")
    return contract, True


def _placeholder_guest_fields() -> Dict[str, object]:
    today = date.today()
    return {
        "firstname": "Guest",
        "lastname": "User",
        "birth_date": today,
        "sex": Sex.MALE,
        "nationality": "Pending",
        "email": "pending@example.com",
        "phone": "N/A",
        "residence_country": "Pending",
        "residence_city": "Pending",
        "residence_address": "Pending",
        "residence_postal_code": "00000",
        "document_type": DocumentType.PASSPORT,
        "document_number": "PENDING",
        "document_issue_date": today,
    }


def contract_form_url(contract: ReservationContract) -> str:
    return f"{settings.guest_contract_base_url}/{contract.hash_id}"


def send_to_guest(db: Session, reservation_id: uuid.UUID) -> Tuple[Reservation, ReservationContract, str]:
    """
    Route the reservation's contract to the guest.

    Missing guest fields get placeholders so the contract can leave DRAFT;
    the guest overwrites them through the contract form.
    """
    reservation = get_reservation(db, reservation_id)

    with unit_of_work(db):
        lock_property(db, reservation.property_id)
        db.refresh(reservation)

        contract = reservation.contract
        if contract is None:
            raise NotFoundError("Contract", "Contract not found. Please generate a contract first.")

        ensure_available(
            db,
            reservation.property_id,
            reservation.start_date,
            reservation.end_date,
            exclude_reservation_id=reservation.id,
            message="Cannot send to guest due to date conflict with existing reservations",
        )

        for field_name, value in _placeholder_guest_fields().items():
            if not getattr(contract, field_name):
                setattr(contract, field_name, value)

        if contract.status == ContractStatus.DRAFT:
            contract.status = ContractStatus.SENT
        elif contract.status != ContractStatus.SENT:
            raise InvalidTransitionError(contract.status.value, ContractStatus.SENT.value)

        advance_reservation(db, reservation, ReservationStatus.SENT)

    url = contract_form_url(contract)
    logger.info(f"[RESERVATION] Sent {reservation.id} to guest | contract={contract.id}")
    return reservation, contract, url


def update_electronic_lock(
    db: Session,
    reservation_id: uuid.UUID,
    enabled: bool,
    code: Optional[str],
) -> Reservation:
    reservation = get_reservation(db, reservation_id)
    stored_code = normalize_lock_code(enabled, code)

    with unit_of_work(db):
        reservation.electronic_lock_enabled = enabled
        reservation.electronic_lock_code = stored_code

    logger.info(f"[RESERVATION] Electronic lock {'enabled' if enabled else 'disabled'} on {reservation.id}")
    return reservation


def delete_reservation(db: Session, reservation_id: uuid.UUID) -> None:
    """Administrative hard delete; bypasses the state machine."""
    reservation = get_reservation(db, reservation_id)
    with unit_of_work(db):
        db.delete(reservation)
    logger.info(f"[RESERVATION] Deleted {reservation_id}")

"""
Contract Service - guest registration document lifecycle.

    DRAFT -> SENT -> SIGNED -> COMPLETED
                           -> REJECTED

SIGNED and COMPLETED drive the linked reservation to ``signed`` and
``confirmed`` in the same transaction as the contract change.
"""
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.orm import Session

from staydesk.core.config import settings
from staydesk.core.exceptions import (
    BookingError, IncompleteEntityError, InvalidStatusError, InvalidTransitionError, NotFoundError,
)
from staydesk.models.contract import ReservationContract, ContractStatus, FINALIZING_STATUSES
from staydesk.models.reservation import ReservationStatus
from staydesk.schemas.contract import ContractCreate, ContractUpdate
from staydesk.services.availability import check_availability, lock_property
from staydesk.services.identifiers import allocate_public_id
from staydesk.services.reservation_service import advance_reservation, get_reservation
from staydesk.services.uow import unit_of_work

logger = logging.getLogger(__name__)

CONTRACT_TRANSITIONS: Dict[ContractStatus, FrozenSet[ContractStatus]] = {
    ContractStatus.DRAFT: frozenset({ContractStatus.SENT}),
    ContractStatus.SENT: frozenset({ContractStatus.SIGNED}),
    ContractStatus.SIGNED: frozenset({ContractStatus.COMPLETED, ContractStatus.REJECTED}),
    ContractStatus.REJECTED: frozenset(),
    ContractStatus.COMPLETED: frozenset(),
}

# Contract status -> reservation status it implies
RESERVATION_CASCADE: Dict[ContractStatus, ReservationStatus] = {
    ContractStatus.SIGNED: ReservationStatus.SIGNED,
    ContractStatus.COMPLETED: ReservationStatus.CONFIRMED,
}

UNDELETABLE_STATUSES = (ContractStatus.SIGNED, ContractStatus.COMPLETED)


def parse_contract_status(value, current: Optional[ContractStatus] = None) -> ContractStatus:
    try:
        return ContractStatus(value)
    except ValueError:
        raise InvalidStatusError(
            value, [s.value for s in ContractStatus], current.value if current else None
        )


def ensure_guest_complete(contract: ReservationContract) -> None:
    missing = contract.missing_guest_fields()
    if missing:
        logger.warning(f"[CONTRACT] {contract.id} missing guest fields: {', '.join(missing)}")
        raise IncompleteEntityError(missing)


# ─────────────────────── Queries ───────────────────────

def get_contract(db: Session, contract_id: uuid.UUID) -> ReservationContract:
    contract = db.get(ReservationContract, contract_id)
    if contract is None:
        raise NotFoundError("Contract")
    return contract


def get_contract_by_hash(db: Session, hash_id: str) -> ReservationContract:
    contract = db.query(ReservationContract).filter(ReservationContract.hash_id == hash_id).first()
    if contract is None:
        raise NotFoundError("Contract")
    return contract


def get_contract_for_reservation(db: Session, reservation_id: uuid.UUID) -> ReservationContract:
    contract = (
        db.query(ReservationContract)
        .filter(ReservationContract.reservation_id == reservation_id)
        .first()
    )
    if contract is None:
        raise NotFoundError("Contract", "Contract not found for this reservation")
    return contract


def list_property_contracts(db: Session, property_id: uuid.UUID) -> List[ReservationContract]:
    return (
        db.query(ReservationContract)
        .filter(ReservationContract.property_id == property_id)
        .order_by(ReservationContract.created_at.desc())
        .all()
    )


def contract_details(contract: ReservationContract) -> dict:
    """Flattened view of the contract, its reservation and its property."""
    prop = contract.property
    reservation = contract.reservation
    base_url = settings.FRONTEND_URL.rstrip("/")
    return {
        "property_name": prop.name if prop else None,
        "property_place_name": prop.place_name if prop else None,
        "check_in_date": reservation.start_date if reservation else None,
        "check_in_time": prop.check_in_time if prop else None,
        "check_out_date": reservation.end_date if reservation else None,
        "check_out_time": prop.check_out_time if prop else None,
        "capacity": prop.capacity if prop else None,
        "guest_firstname": contract.firstname,
        "guest_lastname": contract.lastname,
        "guest_email": contract.email,
        "guest_phone": contract.phone,
        "booking_source": reservation.booking_source if reservation else None,
        "reservation_status": reservation.status if reservation else None,
        "contract_generation_link": (
            f"{base_url}/generate-contract/{reservation.id}" if reservation else None
        ),
        "total_price": reservation.total_price if reservation else None,
    }


def check_contract_availability(
    db: Session,
    property_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> dict:
    """
    Availability keyed by check-in / check-out, one entry per distinct range.

    Answers from the same reservation query as every other availability
    check, so both views always agree.
    """
    result = check_availability(db, property_id, start_date, end_date)
    bookings: Dict[tuple, dict] = {}
    for reservation in result.conflicts:
        key = (reservation.start_date, reservation.end_date)
        if key in bookings:
            continue
        bookings[key] = {
            "check_in": reservation.start_date,
            "check_out": reservation.end_date,
            "status": reservation.status,
            "guest": reservation.contract.guest_name if reservation.contract else "",
        }
    return {
        "property_id": property_id,
        "start_date": start_date,
        "end_date": end_date,
        "available": result.available,
        "conflicting_bookings": list(bookings.values()),
        "total_conflicts": len(bookings),
    }


# ─────────────────────── State machine ───────────────────────

def update_contract_status(
    db: Session,
    contract_id: uuid.UUID,
    status,
    ip_address: Optional[str] = None,
) -> ReservationContract:
    contract = get_contract(db, contract_id)
    new_status = parse_contract_status(status, contract.status)

    with unit_of_work(db):
        lock_property(db, contract.property_id)
        db.refresh(contract)
        current = contract.status

        if new_status not in CONTRACT_TRANSITIONS[current]:
            logger.warning(f"[CONTRACT] {contract.id} rejected {current.value} -> {new_status.value}")
            raise InvalidTransitionError(current.value, new_status.value)

        if current == ContractStatus.DRAFT and new_status in FINALIZING_STATUSES:
            ensure_guest_complete(contract)

        contract.status = new_status
        if new_status == ContractStatus.SIGNED:
            contract.signed_at = datetime.now(timezone.utc)
            contract.signing_ip_address = ip_address

        target = RESERVATION_CASCADE.get(new_status)
        if target is not None:
            advance_reservation(db, contract.reservation, target)

        db.flush()

    logger.info(f"[CONTRACT] {contract.id} {current.value} -> {new_status.value}")
    return contract


# ─────────────────────── Commands ───────────────────────

def create_contract(db: Session, payload: ContractCreate) -> ReservationContract:
    reservation = get_reservation(db, payload.reservation_id)
    if reservation.contract is not None:
        raise BookingError(
            "A contract already exists for this reservation",
            extra={"contract_id": str(reservation.contract.id)},
        )

    with unit_of_work(db):
        contract = ReservationContract(
            id=uuid.uuid4(),
            reservation_id=reservation.id,
            property_id=reservation.property_id,
            check_in_date=reservation.start_date,
            check_out_date=reservation.end_date,
            status=ContractStatus.DRAFT,
            hash_id=allocate_public_id(db, ReservationContract),
            **payload.model_dump(exclude={"reservation_id"}, exclude_unset=True),
        )
        db.add(contract)
        db.flush()

    logger.info(f"[CONTRACT] Created {contract.id} for reservation {reservation.id}")
    return contract


def update_contract(db: Session, contract_id: uuid.UUID, payload: ContractUpdate) -> ReservationContract:
    contract = get_contract(db, contract_id)
    changes = payload.model_dump(exclude_unset=True)

    with unit_of_work(db):
        for key, value in changes.items():
            setattr(contract, key, value)
        # Past DRAFT the guest record must stay complete
        if contract.status != ContractStatus.DRAFT:
            ensure_guest_complete(contract)

    logger.info(f"[CONTRACT] Updated {contract.id} fields: {', '.join(sorted(changes)) or 'none'}")
    return contract


def delete_contract(db: Session, contract_id: uuid.UUID) -> None:
    contract = get_contract(db, contract_id)
    if contract.status in UNDELETABLE_STATUSES:
        raise BookingError("Cannot delete a signed or completed contract")

    with unit_of_work(db):
        db.delete(contract)
    logger.info(f"[CONTRACT] Deleted {contract_id}")

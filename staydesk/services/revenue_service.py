"""
Revenue Service - property income ledger.

Revenue periods of one property never overlap (inclusive ranges, same test as
reservation availability). Reports prorate each amount by day across the
months it covers.
"""
import logging
import uuid
from calendar import monthrange
from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from staydesk.core.exceptions import BookingError, ConflictError, NotFoundError
from staydesk.models.reservation import Reservation
from staydesk.models.revenue import PropertyRevenue
from staydesk.schemas.reservation import ReservationRevenueCreate
from staydesk.schemas.revenue import RevenueCreate, RevenueUpdate
from staydesk.services.availability import lock_property, validate_range
from staydesk.services.reservation_service import get_reservation
from staydesk.services.uow import unit_of_work

logger = logging.getLogger(__name__)

PERIOD_TAKEN = "Revenue for this period already exists"


def revenue_to_dict(revenue: PropertyRevenue) -> Dict[str, Any]:
    return {
        "id": str(revenue.id),
        "start_date": revenue.start_date.isoformat(),
        "end_date": revenue.end_date.isoformat(),
        "amount": revenue.amount,
        "reservation_id": str(revenue.reservation_id) if revenue.reservation_id else None,
    }


def find_overlapping_revenue(
    db: Session,
    property_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_revenue_id: Optional[uuid.UUID] = None,
) -> List[PropertyRevenue]:
    q = db.query(PropertyRevenue).filter(
        PropertyRevenue.property_id == property_id,
        PropertyRevenue.start_date <= end_date,
        PropertyRevenue.end_date >= start_date,
    )
    if exclude_revenue_id is not None:
        q = q.filter(PropertyRevenue.id != exclude_revenue_id)
    return q.order_by(PropertyRevenue.start_date).all()


def ensure_period_free(
    db: Session,
    property_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_revenue_id: Optional[uuid.UUID] = None,
) -> None:
    overlapping = find_overlapping_revenue(db, property_id, start_date, end_date, exclude_revenue_id)
    if not overlapping:
        return
    logger.warning(
        f"[REVENUE] Property {property_id} {start_date}..{end_date} "
        f"overlaps {len(overlapping)} revenue record(s)"
    )
    raise ConflictError(
        PERIOD_TAKEN,
        conflicts=[revenue_to_dict(r) for r in overlapping],
        conflicts_key="conflicting_revenues",
    )


def _ensure_reservation_unbilled(db: Session, reservation_id: uuid.UUID) -> None:
    existing = (
        db.query(PropertyRevenue)
        .filter(PropertyRevenue.reservation_id == reservation_id)
        .first()
    )
    if existing is not None:
        raise BookingError(
            "Revenue already exists for this reservation",
            extra={"revenue_id": str(existing.id)},
        )


# ─────────────────────── Queries ───────────────────────

def get_revenue(db: Session, revenue_id: uuid.UUID) -> PropertyRevenue:
    revenue = db.get(PropertyRevenue, revenue_id)
    if revenue is None:
        raise NotFoundError("Revenue record")
    return revenue


def list_property_revenue(db: Session, property_id: uuid.UUID) -> List[PropertyRevenue]:
    return (
        db.query(PropertyRevenue)
        .filter(PropertyRevenue.property_id == property_id)
        .order_by(PropertyRevenue.start_date.desc())
        .all()
    )


def annual_revenue(db: Session, property_id: uuid.UUID, year: int) -> Dict[str, Any]:
    """
    Monthly revenue of a property for ``year``.

    An amount is spread evenly over every day of its own period; only the
    days falling inside ``year`` are counted, so a period spanning New Year
    contributes to both years.
    """
    year_start = date(year, 1, 1)
    year_end = date(year, 12, 31)
    revenues = (
        db.query(PropertyRevenue)
        .filter(
            PropertyRevenue.property_id == property_id,
            PropertyRevenue.start_date <= year_end,
            PropertyRevenue.end_date >= year_start,
        )
        .order_by(PropertyRevenue.start_date)
        .all()
    )

    amounts = [0.0] * 12
    notes: List[List[str]] = [[] for _ in range(12)]

    for revenue in revenues:
        total_days = (revenue.end_date - revenue.start_date).days + 1
        first = max(revenue.start_date, year_start)
        last = min(revenue.end_date, year_end)

        days_per_month: Counter = Counter()
        day = first
        while day <= last:
            # jump straight to the end of the month or of the period
            month_end = date(day.year, day.month, monthrange(day.year, day.month)[1])
            chunk_end = min(month_end, last)
            days_per_month[day.month] += (chunk_end - day).days + 1
            day = chunk_end + timedelta(days=1)

        for month, days in sorted(days_per_month.items()):
            amounts[month - 1] += revenue.amount * days / total_days
            if revenue.notes:
                notes[month - 1].append(f"{revenue.notes} ({days} days)")

    total = sum(amounts)
    return {
        "property_id": property_id,
        "year": year,
        "revenues": [
            {"month": i + 1, "amount": round(amounts[i], 2), "notes": "; ".join(notes[i])}
            for i in range(12)
        ],
        "total_revenue": round(total, 2),
    }


# ─────────────────────── Commands ───────────────────────

def add_revenue(db: Session, payload: RevenueCreate) -> PropertyRevenue:
    validate_range(payload.start_date, payload.end_date)

    with unit_of_work(db):
        lock_property(db, payload.property_id)

        if payload.reservation_id is not None:
            reservation = get_reservation(db, payload.reservation_id)
            if reservation.property_id != payload.property_id:
                raise BookingError("Reservation does not belong to this property")
            _ensure_reservation_unbilled(db, reservation.id)

        ensure_period_free(db, payload.property_id, payload.start_date, payload.end_date)

        revenue = PropertyRevenue(id=uuid.uuid4(), **payload.model_dump())
        db.add(revenue)
        db.flush()

    logger.info(
        f"[REVENUE] Recorded {revenue.amount} on property {revenue.property_id} "
        f"({revenue.start_date}..{revenue.end_date})"
    )
    return revenue


def update_revenue(db: Session, revenue_id: uuid.UUID, payload: RevenueUpdate) -> PropertyRevenue:
    revenue = get_revenue(db, revenue_id)
    changes = payload.model_dump(exclude_unset=True)

    with unit_of_work(db):
        lock_property(db, revenue.property_id)
        db.refresh(revenue)

        start_date = changes.get("start_date", revenue.start_date)
        end_date = changes.get("end_date", revenue.end_date)
        validate_range(start_date, end_date)
        ensure_period_free(db, revenue.property_id, start_date, end_date, exclude_revenue_id=revenue.id)

        for key, value in changes.items():
            setattr(revenue, key, value)

    logger.info(f"[REVENUE] Updated {revenue.id} fields: {', '.join(sorted(changes)) or 'none'}")
    return revenue


def create_revenue_from_reservation(
    db: Session,
    reservation_id: uuid.UUID,
    payload: ReservationRevenueCreate,
) -> PropertyRevenue:
    """Record revenue over the reservation's own stay dates."""
    reservation = get_reservation(db, reservation_id)

    with unit_of_work(db):
        lock_property(db, reservation.property_id)
        _ensure_reservation_unbilled(db, reservation.id)
        ensure_period_free(db, reservation.property_id, reservation.start_date, reservation.end_date)

        revenue = PropertyRevenue(
            id=uuid.uuid4(),
            property_id=reservation.property_id,
            reservation_id=reservation.id,
            amount=payload.amount,
            start_date=reservation.start_date,
            end_date=reservation.end_date,
            notes=payload.notes or f"Revenue from reservation #{reservation.hash_id}",
            created_by=payload.created_by or reservation.created_by_user_id,
        )
        db.add(revenue)
        db.flush()

    logger.info(f"[REVENUE] Recorded {revenue.amount} from reservation {reservation.id}")
    return revenue


def delete_revenue(db: Session, revenue_id: uuid.UUID) -> None:
    revenue = get_revenue(db, revenue_id)
    with unit_of_work(db):
        db.delete(revenue)
    logger.info(f"[REVENUE] Deleted {revenue_id}")

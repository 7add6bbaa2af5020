"""
Concierge Assignment Service

A property has at most one active concierge. The guard here gives callers a
readable conflict; the partial unique index on user_properties catches the
writes that race past it, and those surface as the same conflict.
"""
import logging
import uuid
from typing import Dict, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staydesk.core.exceptions import BookingError, ConflictError, InvalidStatusError, NotFoundError
from staydesk.db.base import utcnow
from staydesk.models.assignment import UserProperty, AssignmentStatus
from staydesk.models.user import User
from staydesk.services.availability import lock_property
from staydesk.services.uow import unit_of_work

logger = logging.getLogger(__name__)

ALREADY_ASSIGNED = "Property is already assigned to another concierge"
ACTIVE_INDEX = "ux_user_properties_active_property"


def _brief(assignment: UserProperty) -> Dict[str, str]:
    return {
        "id": str(assignment.id),
        "concierge_id": str(assignment.concierge_id),
        "property_id": str(assignment.property_id),
        "status": assignment.status.value,
    }


def _find_active_holder(
    db: Session,
    property_id: uuid.UUID,
    concierge_id: uuid.UUID,
) -> UserProperty:
    """Active assignment of the property to a concierge other than ``concierge_id``."""
    return (
        db.query(UserProperty)
        .filter(
            UserProperty.property_id == property_id,
            UserProperty.concierge_id != concierge_id,
            UserProperty.status == AssignmentStatus.ACTIVE,
        )
        .first()
    )


def _violates_exclusivity(exc: IntegrityError) -> bool:
    """True when the write tripped the active-assignment index, not another constraint."""
    message = str(exc.orig)
    # PostgreSQL names the index; SQLite names the indexed column
    return ACTIVE_INDEX in message or "user_properties.property_id" in message


def _already_assigned(holder: UserProperty = None) -> ConflictError:
    return ConflictError(
        ALREADY_ASSIGNED,
        conflicts=[_brief(holder)] if holder is not None else [],
        conflicts_key="conflicting_assignments",
    )


def get_assignment(db: Session, assignment_id: uuid.UUID) -> UserProperty:
    assignment = db.get(UserProperty, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment")
    return assignment


def assign_concierge(
    db: Session,
    client_id: uuid.UUID,
    concierge_id: uuid.UUID,
    property_id: uuid.UUID,
) -> Tuple[UserProperty, bool]:
    """Create (or reactivate) an active assignment. Returns (assignment, created)."""
    if client_id == concierge_id:
        raise BookingError("Cannot assign yourself as a manager")

    try:
        with unit_of_work(db):
            lock_property(db, property_id)
            if db.get(User, client_id) is None:
                raise NotFoundError("Client")
            if db.get(User, concierge_id) is None:
                raise NotFoundError("Concierge")

            own = (
                db.query(UserProperty)
                .filter(
                    UserProperty.client_id == client_id,
                    UserProperty.concierge_id == concierge_id,
                    UserProperty.property_id == property_id,
                )
                .first()
            )
            if own is not None and own.status != AssignmentStatus.INACTIVE:
                raise ConflictError(
                    "Assignment already exists",
                    conflicts=[_brief(own)],
                    conflicts_key="conflicting_assignments",
                )

            holder = _find_active_holder(db, property_id, concierge_id)
            if holder is not None:
                logger.warning(
                    f"[CONCIERGE] Property {property_id} held by {holder.concierge_id}; "
                    f"refusing {concierge_id}"
                )
                raise _already_assigned(holder)

            created = own is None
            if created:
                own = UserProperty(
                    id=uuid.uuid4(),
                    client_id=client_id,
                    concierge_id=concierge_id,
                    property_id=property_id,
                    status=AssignmentStatus.ACTIVE,
                )
                db.add(own)
            else:
                own.status = AssignmentStatus.ACTIVE
                own.assigned_at = utcnow()
            db.flush()
    except IntegrityError as e:
        if not _violates_exclusivity(e):
            raise
        logger.warning(f"[CONCIERGE] Concurrent active assignment on property {property_id}")
        raise _already_assigned()

    logger.info(
        f"[CONCIERGE] {'Assigned' if created else 'Reactivated'} {concierge_id} "
        f"on property {property_id} for client {client_id}"
    )
    return own, created


def update_assignment_status(db: Session, assignment_id: uuid.UUID, status) -> UserProperty:
    assignment = get_assignment(db, assignment_id)
    try:
        new_status = AssignmentStatus(status)
    except ValueError:
        raise InvalidStatusError(status, [s.value for s in AssignmentStatus], assignment.status.value)

    try:
        with unit_of_work(db):
            lock_property(db, assignment.property_id)
            db.refresh(assignment)
            if new_status == AssignmentStatus.ACTIVE and assignment.status != AssignmentStatus.ACTIVE:
                holder = _find_active_holder(db, assignment.property_id, assignment.concierge_id)
                if holder is not None:
                    raise _already_assigned(holder)
            assignment.status = new_status
            db.flush()
    except IntegrityError as e:
        if not _violates_exclusivity(e):
            raise
        raise _already_assigned()

    logger.info(f"[CONCIERGE] Assignment {assignment.id} -> {new_status.value}")
    return assignment


def unassign_concierge(
    db: Session,
    client_id: uuid.UUID,
    concierge_id: uuid.UUID,
    property_id: uuid.UUID,
) -> None:
    """Remove the assignment row entirely."""
    assignment = (
        db.query(UserProperty)
        .filter(
            UserProperty.client_id == client_id,
            UserProperty.concierge_id == concierge_id,
            UserProperty.property_id == property_id,
        )
        .first()
    )
    if assignment is None:
        raise NotFoundError("Assignment")

    with unit_of_work(db):
        db.delete(assignment)
    logger.info(f"[CONCIERGE] Removed {concierge_id} from property {property_id}")


# ─────────────────────── Queries ───────────────────────

def _property_brief(assignment: UserProperty) -> dict:
    return {
        "id": assignment.property.id,
        "name": assignment.property.name,
        "status": assignment.status,
        "assigned_at": assignment.assigned_at,
    }


def _concierge_dict(user: User, assignments: List[UserProperty]) -> dict:
    return {
        "id": user.id,
        "firstname": user.firstname,
        "lastname": user.lastname,
        "email": user.email,
        "phone": user.phone,
        "properties": [_property_brief(a) for a in assignments],
    }


def list_client_concierges(db: Session, client_id: uuid.UUID) -> List[dict]:
    assignments = (
        db.query(UserProperty)
        .filter(
            UserProperty.client_id == client_id,
            UserProperty.status != AssignmentStatus.INACTIVE,
        )
        .order_by(UserProperty.assigned_at)
        .all()
    )
    grouped: Dict[uuid.UUID, List[UserProperty]] = {}
    for assignment in assignments:
        grouped.setdefault(assignment.concierge_id, []).append(assignment)
    return [_concierge_dict(items[0].concierge, items) for items in grouped.values()]


def concierge_details(db: Session, concierge_id: uuid.UUID) -> dict:
    assignments = (
        db.query(UserProperty)
        .filter(
            UserProperty.concierge_id == concierge_id,
            UserProperty.status != AssignmentStatus.INACTIVE,
        )
        .all()
    )
    user = db.get(User, concierge_id)
    if user is None or not assignments:
        raise NotFoundError("Manager", "Manager not found or not assigned to any properties")
    return _concierge_dict(user, assignments)


def list_concierge_properties(db: Session, concierge_id: uuid.UUID) -> List[UserProperty]:
    return (
        db.query(UserProperty)
        .filter(UserProperty.concierge_id == concierge_id)
        .order_by(UserProperty.assigned_at.desc())
        .all()
    )

"""
Property Registry Routes
Only what a booking needs: register a listing, read it, enable or disable it.

  POST  /api/properties/                   – register property (public id assigned)
  GET   /api/properties/{id}               – property detail
  GET   /api/properties/client/{client_id} – client's properties
  PATCH /api/properties/{id}/status        – pending / enabled / disabled
"""
import logging
import uuid
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from staydesk.core.exceptions import InvalidStatusError, NotFoundError
from staydesk.database import get_db
from staydesk.models.property import Property, PropertyStatus
from staydesk.models.user import User
from staydesk.schemas.property import PropertyCreate, PropertyOut, PropertyStatusUpdate
from staydesk.services.identifiers import allocate_public_id
from staydesk.services.uow import unit_of_work

router = APIRouter(tags=["Properties"])
logger = logging.getLogger(__name__)


def _get_property_or_404(property_id: UUID, db: Session) -> Property:
    prop = db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Property")
    return prop


@router.post("/", response_model=PropertyOut, status_code=status.HTTP_201_CREATED)
def create_property(payload: PropertyCreate, db: Session = Depends(get_db)):
    if db.get(User, payload.client_id) is None:
        raise NotFoundError("Client")

    data = payload.model_dump(exclude={"ical_links"})
    with unit_of_work(db):
        prop = Property(
            id=uuid.uuid4(),
            hash_id=allocate_public_id(db, Property),
            ical_links=[link.model_dump() for link in payload.ical_links],
            status=PropertyStatus.PENDING,
            **data,
        )
        db.add(prop)
        db.flush()

    logger.info(f"[PROPERTY] Registered {prop.id} for client {prop.client_id}")
    return prop


@router.get("/client/{client_id}", response_model=List[PropertyOut])
def list_client_properties(client_id: UUID, db: Session = Depends(get_db)):
    return (
        db.query(Property)
        .filter(Property.client_id == client_id)
        .order_by(Property.created_at.desc())
        .all()
    )


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: UUID, db: Session = Depends(get_db)):
    return _get_property_or_404(property_id, db)


@router.patch("/{property_id}/status", response_model=PropertyOut)
def update_property_status(property_id: UUID, payload: PropertyStatusUpdate, db: Session = Depends(get_db)):
    prop = _get_property_or_404(property_id, db)
    try:
        new_status = PropertyStatus(payload.status)
    except ValueError:
        raise InvalidStatusError(payload.status, [s.value for s in PropertyStatus])

    with unit_of_work(db):
        prop.status = new_status
    logger.info(f"[PROPERTY] {prop.id} -> {new_status.value}")
    return prop

"""
Concierge Assignment Routes

  GET    /api/concierges/client/{client_id}          – client's concierges and their properties
  POST   /api/concierges/assign                      – assign concierge to property
  DELETE /api/concierges/unassign                    – remove assignment (body)
  PATCH  /api/concierges/status/{assignment_id}      – activate / deactivate
  GET    /api/concierges/{concierge_id}              – concierge detail
  GET    /api/concierges/{concierge_id}/properties   – every property the concierge manages
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from staydesk.database import get_db
from staydesk.schemas.assignment import (
    AssignConcierge, AssignmentOut, AssignmentStatusUpdate, ConciergeOut,
    ConciergePropertyOut, UnassignConcierge,
)
from staydesk.services import assignment_service

router = APIRouter(tags=["Concierges"])
logger = logging.getLogger(__name__)


@router.get("/client/{client_id}", response_model=List[ConciergeOut])
def list_client_concierges(client_id: UUID, db: Session = Depends(get_db)):
    return assignment_service.list_client_concierges(db, client_id)


@router.post("/assign", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def assign_concierge(payload: AssignConcierge, db: Session = Depends(get_db)):
    assignment, created = assignment_service.assign_concierge(
        db, payload.client_id, payload.concierge_id, payload.property_id
    )
    body = AssignmentOut.model_validate(assignment).model_dump(mode="json")
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=body,
    )


@router.delete("/unassign")
def unassign_concierge(payload: UnassignConcierge = Body(...), db: Session = Depends(get_db)):
    assignment_service.unassign_concierge(
        db, payload.client_id, payload.concierge_id, payload.property_id
    )
    return {"message": "Concierge removed successfully"}


@router.patch("/status/{assignment_id}", response_model=AssignmentOut)
def update_assignment_status(
    assignment_id: UUID,
    payload: AssignmentStatusUpdate,
    db: Session = Depends(get_db),
):
    return assignment_service.update_assignment_status(db, assignment_id, payload.status)


@router.get("/{concierge_id}", response_model=ConciergeOut)
def get_concierge(concierge_id: UUID, db: Session = Depends(get_db)):
    return assignment_service.concierge_details(db, concierge_id)


@router.get("/{concierge_id}/properties", response_model=List[ConciergePropertyOut])
def list_concierge_properties(concierge_id: UUID, db: Session = Depends(get_db)):
    return assignment_service.list_concierge_properties(db, concierge_id)

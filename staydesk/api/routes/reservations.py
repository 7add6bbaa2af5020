"""
Reservation Routes

  GET    /api/reservations/                                  – all reservations
  POST   /api/reservations/                                  – create (availability-checked)
  GET    /api/reservations/{id}                              – reservation detail
  GET    /api/reservations/hash/{hash_id}                    – by public id
  GET    /api/reservations/property/{property_id}            – property calendar
  GET    /api/reservations/property/{property_id}/check-availability
  GET    /api/reservations/client/{client_id}                – created by client
  GET    /api/reservations/concierge/{concierge_id}          – on concierge's properties
  GET    /api/reservations/check-uid/{uid}                   – calendar event already imported?
  PUT    /api/reservations/{id}/status                       – state machine (admin override)
  POST   /api/reservations/{id}/send                         – send contract form to guest
  POST   /api/reservations/{id}/generate-contract            – idempotent contract creation
  GET    /api/reservations/{id}/contract                     – reservation's contract
  POST   /api/reservations/{id}/generate-revenue             – revenue over the stay dates
  PATCH  /api/reservations/{id}/electronic-lock              – lock code settings
  DELETE /api/reservations/{id}                              – admin hard delete
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from staydesk.core.exceptions import BookingError
from staydesk.database import get_db
from staydesk.dependencies import get_current_user_optional, require_admin
from staydesk.models.user import User, UserRole
from staydesk.schemas.contract import ContractOut
from staydesk.schemas.reservation import (
    AvailabilityOut, CalendarUidOut, ElectronicLockOut, ElectronicLockUpdate,
    ReservationCreate, ReservationOut, ReservationRevenueCreate, ReservationStatusOut,
    ReservationStatusUpdate, SendToGuestOut,
)
from staydesk.schemas.revenue import RevenueOut
from staydesk.services import reservation_service, revenue_service
from staydesk.services.availability import check_availability
from staydesk.services.contract_service import get_contract_for_reservation

router = APIRouter(tags=["Reservations"])
logger = logging.getLogger(__name__)


# ═══════════════════════ QUERIES ═══════════════════════

@router.get("/", response_model=List[ReservationOut])
def list_reservations(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    parsed = reservation_service.parse_reservation_status(status_filter) if status_filter else None
    return reservation_service.list_reservations(db, status=parsed, skip=skip, limit=limit)


@router.get("/hash/{hash_id}", response_model=ReservationOut)
def get_reservation_by_hash(hash_id: str, db: Session = Depends(get_db)):
    return reservation_service.get_reservation_by_hash(db, hash_id)


@router.get("/property/{property_id}", response_model=List[ReservationOut])
def list_property_reservations(property_id: UUID, db: Session = Depends(get_db)):
    return reservation_service.list_reservations(db, property_id=property_id, limit=None)


@router.get("/property/{property_id}/check-availability", response_model=AvailabilityOut)
def check_property_availability(
    property_id: UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    exclude_reservation_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
):
    result = check_availability(db, property_id, start_date, end_date, exclude_reservation_id)
    return {
        "available": result.available,
        "property_id": property_id,
        "start_date": start_date,
        "end_date": end_date,
        "conflicting_reservations": result.conflicts,
    }


@router.get("/client/{client_id}", response_model=List[ReservationOut])
def list_client_reservations(client_id: UUID, db: Session = Depends(get_db)):
    return reservation_service.list_client_reservations(db, client_id)


@router.get("/concierge/{concierge_id}", response_model=List[ReservationOut])
def list_concierge_reservations(concierge_id: UUID, db: Session = Depends(get_db)):
    return reservation_service.list_concierge_reservations(db, concierge_id)


@router.get("/check-uid/{uid}", response_model=CalendarUidOut)
def check_calendar_uid(uid: str, db: Session = Depends(get_db)):
    reservation = reservation_service.find_by_calendar_uid(db, uid)
    return {"exists": reservation is not None, "reservation_id": reservation.id if reservation else None}


@router.get("/{reservation_id}", response_model=ReservationOut)
def get_reservation(reservation_id: UUID, db: Session = Depends(get_db)):
    return reservation_service.get_reservation(db, reservation_id)


@router.get("/{reservation_id}/contract", response_model=ContractOut)
def get_reservation_contract(reservation_id: UUID, db: Session = Depends(get_db)):
    reservation_service.get_reservation(db, reservation_id)
    return get_contract_for_reservation(db, reservation_id)


# ═══════════════════════ COMMANDS ═══════════════════════

@router.post("/", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    creator_id = current_user.id if current_user else payload.created_by_user_id
    if creator_id is None:
        raise BookingError("created_by_user_id is required when not authenticated")
    return reservation_service.create_reservation(db, payload, creator_id)


@router.put("/{reservation_id}/status", response_model=ReservationStatusOut)
def update_reservation_status(
    reservation_id: UUID,
    payload: ReservationStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    if payload.override and (current_user is None or current_user.role != UserRole.ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only administrators can override")

    reservation = reservation_service.update_reservation_status(
        db, reservation_id, payload.status, override=payload.override
    )
    return {"message": "Reservation status updated successfully", "reservation": reservation}


@router.post("/{reservation_id}/send", response_model=SendToGuestOut)
def send_to_guest(reservation_id: UUID, db: Session = Depends(get_db)):
    _, _, url = reservation_service.send_to_guest(db, reservation_id)
    return {"message": "Reservation sent to guest successfully", "contract_form_url": url}


@router.post("/{reservation_id}/generate-contract", response_model=ContractOut)
def generate_contract(reservation_id: UUID, db: Session = Depends(get_db)):
    contract, created = reservation_service.generate_contract(db, reservation_id)
    body = ContractOut.model_validate(contract).model_dump(mode="json")
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=body,
    )


@router.post(
    "/{reservation_id}/generate-revenue",
    response_model=RevenueOut,
    status_code=status.HTTP_201_CREATED,
)
def generate_revenue(reservation_id: UUID, payload: ReservationRevenueCreate, db: Session = Depends(get_db)):
    return revenue_service.create_revenue_from_reservation(db, reservation_id, payload)


@router.patch("/{reservation_id}/electronic-lock", response_model=ElectronicLockOut)
def update_electronic_lock(reservation_id: UUID, payload: ElectronicLockUpdate, db: Session = Depends(get_db)):
    reservation = reservation_service.update_electronic_lock(
        db, reservation_id, payload.electronic_lock_enabled, payload.electronic_lock_code
    )
    return {
        "success": True,
        "message": "Electronic lock settings updated successfully",
        "electronic_lock_enabled": reservation.electronic_lock_enabled,
        "electronic_lock_code": reservation.electronic_lock_code,
    }


@router.delete("/{reservation_id}")
def delete_reservation(
    reservation_id: UUID,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    reservation_service.delete_reservation(db, reservation_id)
    logger.info(f"[RESERVATION] {reservation_id} deleted by admin {admin.id}")
    return {"message": "Reservation deleted successfully"}

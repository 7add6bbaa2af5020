"""
Reservation Contract Routes
Hosts manage contracts by id; guests reach theirs through the public hash id.

  POST   /api/reservationcontract/                                   – create contract
  GET    /api/reservationcontract/{id}                               – contract detail
  PUT    /api/reservationcontract/{id}                               – update guest fields
  DELETE /api/reservationcontract/{id}                               – delete (not after signing)
  PATCH  /api/reservationcontract/{id}/status                        – state machine + cascade
  GET    /api/reservationcontract/{id}/details                       – flattened booking view
  GET    /api/reservationcontract/hash/{hash_id}                     – guest form load
  GET    /api/reservationcontract/property/{property_id}             – property's contracts
  GET    /api/reservationcontract/property/{property_id}/availability
  GET    /api/reservationcontract/reservation/{reservation_id}       – reservation's contract
  GET    /api/reservationcontract/reservation/{reservation_id}/details
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from staydesk.database import get_db
from staydesk.schemas.contract import (
    ContractAvailabilityOut, ContractCreate, ContractDetailsOut, ContractOut,
    ContractStatusUpdate, ContractUpdate, GuestContractOut,
)
from staydesk.services import contract_service

router = APIRouter(tags=["Reservation Contracts"])
logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# ═══════════════════════ QUERIES ═══════════════════════

@router.get("/hash/{hash_id}", response_model=GuestContractOut)
def get_contract_by_hash(hash_id: str, db: Session = Depends(get_db)):
    return contract_service.get_contract_by_hash(db, hash_id)


@router.get("/property/{property_id}", response_model=List[ContractOut])
def list_property_contracts(property_id: UUID, db: Session = Depends(get_db)):
    return contract_service.list_property_contracts(db, property_id)


@router.get("/property/{property_id}/availability", response_model=ContractAvailabilityOut)
def check_availability(
    property_id: UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
):
    return contract_service.check_contract_availability(db, property_id, start_date, end_date)


@router.get("/reservation/{reservation_id}", response_model=ContractOut)
def get_contract_by_reservation(reservation_id: UUID, db: Session = Depends(get_db)):
    return contract_service.get_contract_for_reservation(db, reservation_id)


@router.get("/reservation/{reservation_id}/details", response_model=ContractDetailsOut)
def get_contract_details_by_reservation(reservation_id: UUID, db: Session = Depends(get_db)):
    contract = contract_service.get_contract_for_reservation(db, reservation_id)
    return contract_service.contract_details(contract)


@router.get("/{contract_id}", response_model=ContractOut)
def get_contract(contract_id: UUID, db: Session = Depends(get_db)):
    return contract_service.get_contract(db, contract_id)


@router.get("/{contract_id}/details", response_model=ContractDetailsOut)
def get_contract_details(contract_id: UUID, db: Session = Depends(get_db)):
    contract = contract_service.get_contract(db, contract_id)
    return contract_service.contract_details(contract)


# ═══════════════════════ COMMANDS ═══════════════════════

@router.post("/", response_model=ContractOut, status_code=status.HTTP_201_CREATED)
def create_contract(payload: ContractCreate, db: Session = Depends(get_db)):
    return contract_service.create_contract(db, payload)


@router.put("/{contract_id}", response_model=ContractOut)
def update_contract(contract_id: UUID, payload: ContractUpdate, db: Session = Depends(get_db)):
    return contract_service.update_contract(db, contract_id, payload)


@router.patch("/{contract_id}/status", response_model=ContractOut)
def update_contract_status(
    contract_id: UUID,
    payload: ContractStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    return contract_service.update_contract_status(
        db, contract_id, payload.status, ip_address=_client_ip(request)
    )


@router.delete("/{contract_id}")
def delete_contract(contract_id: UUID, db: Session = Depends(get_db)):
    contract_service.delete_contract(db, contract_id)
    return {"message": "Contract deleted successfully"}

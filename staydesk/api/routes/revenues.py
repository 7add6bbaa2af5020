"""
Property Revenue Routes

  POST   /api/propertyrevenue/revenue                                  – record revenue period
  PUT    /api/propertyrevenue/revenue/{id}                             – update revenue period
  DELETE /api/propertyrevenue/revenue/{id}                             – delete revenue record
  GET    /api/propertyrevenue/property/{property_id}/revenue           – ledger, newest first
  GET    /api/propertyrevenue/property/{property_id}/annual-revenue/{year}
  POST   /api/propertyrevenue/reservation/{reservation_id}/revenue     – revenue from a stay
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from staydesk.database import get_db
from staydesk.schemas.reservation import ReservationRevenueCreate
from staydesk.schemas.revenue import AnnualRevenueOut, RevenueCreate, RevenueOut, RevenueUpdate
from staydesk.services import revenue_service

router = APIRouter(tags=["Property Revenue"])
logger = logging.getLogger(__name__)


@router.post("/revenue", response_model=RevenueOut, status_code=status.HTTP_201_CREATED)
def add_revenue(payload: RevenueCreate, db: Session = Depends(get_db)):
    return revenue_service.add_revenue(db, payload)


@router.put("/revenue/{revenue_id}", response_model=RevenueOut)
def update_revenue(revenue_id: UUID, payload: RevenueUpdate, db: Session = Depends(get_db)):
    return revenue_service.update_revenue(db, revenue_id, payload)


@router.delete("/revenue/{revenue_id}")
def delete_revenue(revenue_id: UUID, db: Session = Depends(get_db)):
    revenue_service.delete_revenue(db, revenue_id)
    return {"message": "Revenue record deleted successfully"}


@router.get("/property/{property_id}/revenue", response_model=List[RevenueOut])
def list_property_revenue(property_id: UUID, db: Session = Depends(get_db)):
    return revenue_service.list_property_revenue(db, property_id)


@router.get("/property/{property_id}/annual-revenue/{year}", response_model=AnnualRevenueOut)
def get_annual_revenue(
    property_id: UUID,
    year: int = Path(..., ge=1900, le=9999),
    db: Session = Depends(get_db),
):
    return revenue_service.annual_revenue(db, property_id, year)


@router.post(
    "/reservation/{reservation_id}/revenue",
    response_model=RevenueOut,
    status_code=status.HTTP_201_CREATED,
)
def create_revenue_from_reservation(
    reservation_id: UUID,
    payload: ReservationRevenueCreate,
    db: Session = Depends(get_db),
):
    return revenue_service.create_revenue_from_reservation(db, reservation_id, payload)

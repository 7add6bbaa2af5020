import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class RevenueCreate(BaseModel):
    property_id: uuid.UUID
    reservation_id: Optional[uuid.UUID] = None
    amount: float = Field(ge=0)
    start_date: date
    end_date: date
    notes: Optional[str] = Field(default=None, max_length=500)
    created_by: uuid.UUID


class RevenueUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("amount", "start_date", "end_date")
    @classmethod
    def not_null(cls, v, info):
        # Omit the field to leave it unchanged; only notes can be cleared
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class RevenueOut(BaseModel):
    id: uuid.UUID
    property_id: uuid.UUID
    reservation_id: Optional[uuid.UUID] = None
    amount: float
    start_date: date
    end_date: date
    notes: Optional[str] = None
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MonthlyRevenue(BaseModel):
    month: int
    amount: float = 0.0
    notes: str = ""


class AnnualRevenueOut(BaseModel):
    property_id: uuid.UUID
    year: int
    revenues: List[MonthlyRevenue]
    total_revenue: float

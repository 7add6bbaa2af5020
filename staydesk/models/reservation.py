"""
Reservation Model
Tables: reservations
"""
from datetime import date
from enum import Enum
import uuid

from sqlalchemy import (
    String, Float, Date, Boolean, ForeignKey, Enum as SQLEnum, Uuid, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staydesk.db.base import Base, TimestampMixin


class ReservationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Reservations in these states do not hold the calendar.
INACTIVE_RESERVATION_STATUSES = (ReservationStatus.DRAFT, ReservationStatus.CANCELLED)


class Reservation(Base, TimestampMixin):
    """A booking of a property for an inclusive date range."""
    __tablename__ = "reservations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    booking_source: Mapped[str] = mapped_column(String(50), nullable=True)

    status: Mapped[ReservationStatus] = mapped_column(
        SQLEnum(ReservationStatus), default=ReservationStatus.DRAFT, nullable=False, index=True
    )

    # Public identifier for guest-facing lookup and calendar correlation
    hash_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    electronic_lock_code: Mapped[str] = mapped_column(String(10), nullable=True)
    electronic_lock_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    calendar_event_uid: Mapped[str] = mapped_column(String(190), unique=True, nullable=True)

    # Defined before the ``property`` relationship shadows the builtin
    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_RESERVATION_STATUSES

    # Relationships
    property = relationship("Property", back_populates="reservations")
    creator = relationship("User", foreign_keys=[created_by_user_id])
    contract = relationship(
        "ReservationContract",
        back_populates="reservation",
        uselist=False,
        cascade="all, delete-orphan",
    )
    # Revenue outlives the reservation; its reservation_id is nulled on delete.
    revenue = relationship("PropertyRevenue", back_populates="reservation", uselist=False)

    __table_args__ = (
        Index("idx_reservations_property_dates", "property_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation id={self.id} property_id={self.property_id} "
            f"{self.start_date}..{self.end_date} status={self.status}>"
        )

"""
Reservation Contract Model
Guest-registration / legal document bound 1:1 to a reservation.
Tables: reservation_contracts
"""
from datetime import date, datetime
from enum import Enum
from typing import List
import uuid

from sqlalchemy import (
    String, Date, DateTime, ForeignKey, Enum as SQLEnum, Uuid, event, inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staydesk.core.exceptions import IncompleteEntityError
from staydesk.db.base import Base, TimestampMixin


class ContractStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    SIGNED = "SIGNED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class Sex(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class DocumentType(str, Enum):
    PASSPORT = "PASSPORT"
    CIN = "CIN"
    DRIVING_LICENSE = "DRIVING_LICENSE"
    MOROCCAN_RESIDENCE = "MOROCCAN_RESIDENCE"
    FOREIGNER_RESIDENCE = "FOREIGNER_RESIDENCE"


# Checked in this order; the first missing one is reported.
REQUIRED_GUEST_FIELDS = (
    "firstname",
    "lastname",
    "birth_date",
    "sex",
    "nationality",
    "email",
    "phone",
    "residence_country",
    "residence_city",
    "residence_address",
    "residence_postal_code",
    "document_type",
    "document_number",
    "document_issue_date",
)

# Leaving DRAFT for one of these requires a complete guest record.
FINALIZING_STATUSES = (ContractStatus.SENT, ContractStatus.SIGNED, ContractStatus.COMPLETED)


class ReservationContract(Base, TimestampMixin):
    __tablename__ = "reservation_contracts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Guest identity
    firstname: Mapped[str] = mapped_column(String(50), nullable=True)
    lastname: Mapped[str] = mapped_column(String(50), nullable=True)
    middlename: Mapped[str] = mapped_column(String(50), nullable=True)
    birth_date: Mapped[date] = mapped_column(Date, nullable=True)
    sex: Mapped[Sex] = mapped_column(SQLEnum(Sex), nullable=True)
    nationality: Mapped[str] = mapped_column(String(50), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=True)
    residence_country: Mapped[str] = mapped_column(String(50), nullable=True)
    residence_city: Mapped[str] = mapped_column(String(50), nullable=True)
    residence_address: Mapped[str] = mapped_column(String(200), nullable=True)
    residence_postal_code: Mapped[str] = mapped_column(String(20), nullable=True)
    document_type: Mapped[DocumentType] = mapped_column(SQLEnum(DocumentType), nullable=True)
    document_number: Mapped[str] = mapped_column(String(50), nullable=True)
    document_issue_date: Mapped[date] = mapped_column(Date, nullable=True)

    # Stay, mirrors the reservation
    check_in_date: Mapped[date] = mapped_column(Date, nullable=True)
    check_out_date: Mapped[date] = mapped_column(Date, nullable=True)

    status: Mapped[ContractStatus] = mapped_column(
        SQLEnum(ContractStatus), default=ContractStatus.DRAFT, nullable=False, index=True,
        active_history=True,
    )
    # Public URL token handed to the guest
    hash_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    # Signature metadata
    signature_image_url: Mapped[str] = mapped_column(String(500), nullable=True)
    signed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    signing_ip_address: Mapped[str] = mapped_column(String(45), nullable=True)

    def missing_guest_fields(self) -> List[str]:
        return [f for f in REQUIRED_GUEST_FIELDS if not getattr(self, f)]

    # Defined before the ``property`` relationship shadows the builtin
    @property
    def guest_name(self) -> str:
        return f"{self.firstname or ''} {self.lastname or ''}".strip()

    reservation = relationship("Reservation", back_populates="contract")
    property = relationship("Property", back_populates="contracts")

    def __repr__(self) -> str:
        return f"<ReservationContract id={self.id} reservation_id={self.reservation_id} status={self.status}>"


@event.listens_for(ReservationContract, "before_update")
def _guard_guest_fields(mapper, connection, target: ReservationContract) -> None:
    """Refuse to flush a contract leaving DRAFT with an incomplete guest record."""
    history = inspect(target).attrs.status.history
    if not history.has_changes() or not history.deleted:
        return
    if history.deleted[0] != ContractStatus.DRAFT or target.status not in FINALIZING_STATUSES:
        return
    missing = target.missing_guest_fields()
    if missing:
        raise IncompleteEntityError(missing)

from datetime import date
import uuid

from sqlalchemy import String, Float, Date, ForeignKey, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staydesk.db.base import Base, TimestampMixin


class PropertyRevenue(Base, TimestampMixin):
    """Income recorded for a property over an inclusive date range."""
    __tablename__ = "property_revenues"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True, unique=True
    )

    amount: Mapped[float] = mapped_column(Float, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str] = mapped_column(String(500), nullable=True)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    property = relationship("Property", back_populates="revenues")
    reservation = relationship("Reservation", back_populates="revenue")

    __table_args__ = (
        Index("idx_property_revenues_property_dates", "property_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<PropertyRevenue id={self.id} property_id={self.property_id} {self.start_date}..{self.end_date}>"

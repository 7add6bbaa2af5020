from enum import Enum
import uuid

from sqlalchemy import Column, String, ForeignKey, Integer, Float, Text, Time, JSON, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship

from staydesk.db.base import Base, TimestampMixin


class PropertyStatus(str, Enum):
    PENDING = "pending"
    ENABLED = "enabled"
    DISABLED = "disabled"


class Property(Base, TimestampMixin):
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    hash_id = Column(String(64), unique=True, nullable=True)

    name = Column(String(50), nullable=False)
    description = Column(Text)
    type = Column(String(50))  # apartment, villa, studio...
    place_name = Column(String(255))
    latitude = Column(Float)
    longitude = Column(Float)
    capacity = Column(Integer)
    check_in_time = Column(Time)
    check_out_time = Column(Time)

    ical_links = Column(JSON)  # [{"name": "airbnb", "url": "https://..."}]

    status = Column(SQLEnum(PropertyStatus), default=PropertyStatus.PENDING, nullable=False)

    # Relationships
    owner = relationship("User", foreign_keys=[client_id])
    reservations = relationship("Reservation", back_populates="property", cascade="all, delete-orphan", passive_deletes=True)
    contracts = relationship("ReservationContract", back_populates="property", cascade="all, delete-orphan", passive_deletes=True)
    revenues = relationship("PropertyRevenue", back_populates="property", cascade="all, delete-orphan", passive_deletes=True)
    assignments = relationship("UserProperty", back_populates="property", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Property id={self.id} name={self.name} status={self.status}>"

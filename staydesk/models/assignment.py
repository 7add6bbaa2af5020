"""
Concierge Assignment Model

Links a property to the concierge who runs it on behalf of the owning client.
At most one assignment per property may be active; the partial unique index
below enforces that in the database as well as in the service guard.
"""
from enum import Enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, Uuid, Enum as SQLEnum, text
from sqlalchemy.orm import relationship

from staydesk.db.base import Base, utcnow


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserProperty(Base):
    __tablename__ = "user_properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    client_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    concierge_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    property_id = Column(Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(SQLEnum(AssignmentStatus), default=AssignmentStatus.ACTIVE, nullable=False)
    assigned_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    client = relationship("User", foreign_keys=[client_id])
    concierge = relationship("User", foreign_keys=[concierge_id])
    property = relationship("Property", back_populates="assignments")

    __table_args__ = (
        Index(
            "ux_user_properties_active_property",
            "property_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<UserProperty id={self.id} property_id={self.property_id} "
            f"concierge_id={self.concierge_id} status={self.status}>"
        )

"""
User Model - Provisioned by the external identity provider
Only the profile fields the booking engine reads are stored here.
"""
from enum import Enum
import uuid

from sqlalchemy import String, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from staydesk.db.base import Base, TimestampMixin


class UserRole(str, Enum):
    ADMIN = "admin"
    CLIENT = "client"
    CONCIERGE = "concierge"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), default=UserRole.CLIENT, nullable=False, index=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    firstname: Mapped[str] = mapped_column(String(50), nullable=False)
    lastname: Mapped[str] = mapped_column(String(50), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"

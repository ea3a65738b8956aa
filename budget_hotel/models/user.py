"""
User identity as seen by the reservation core.

Authentication lives elsewhere; this table only carries what booking and
promotion logic reads (role, contact email, encrypted phone).
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.db.base import Base
from budget_hotel.models.base import IntegerIdMixin, TimestampMixin
from budget_hotel.models.enums import UserRole

if TYPE_CHECKING:
    from budget_hotel.models.booking import Booking


class User(IntegerIdMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(150), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.CUSTOMER
    )
    phone_number_encrypted: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Phone number encrypted with the deterministic field cipher",
    )

    bookings: Mapped[List["Booking"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

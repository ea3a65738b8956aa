"""
Hotel inventory: hotels, room types and physical rooms.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.db.base import Base
from budget_hotel.models.base import IntegerIdMixin, SoftDeleteMixin, TimestampMixin
from budget_hotel.models.enums import RoomStatus


class Hotel(IntegerIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "hotels"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    room_types: Mapped[List["RoomType"]] = relationship(back_populates="hotel")


class RoomType(IntegerIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A sellable category of room with a nightly base price."""

    __tablename__ = "room_types"
    __table_args__ = (
        CheckConstraint("occupancy BETWEEN 1 AND 10", name="ck_room_type_occupancy"),
        CheckConstraint("base_price >= 0", name="ck_room_type_base_price"),
    )

    hotel_id: Mapped[int] = mapped_column(
        ForeignKey("hotels.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    base_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Price per night",
    )

    hotel: Mapped[Hotel] = relationship(back_populates="room_types")
    rooms: Mapped[List["Room"]] = relationship(back_populates="room_type")


class Room(IntegerIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "rooms"

    room_number: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    room_type_id: Mapped[int] = mapped_column(
        ForeignKey("room_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[RoomStatus] = mapped_column(
        Enum(RoomStatus),
        nullable=False,
        default=RoomStatus.AVAILABLE,
        comment="Physical status; only Available rooms are offered, date conflicts come from bookings",
    )

    room_type: Mapped[RoomType] = relationship(back_populates="rooms")

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number}, status={self.status})>"

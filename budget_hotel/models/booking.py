"""
Booking and review models.

The booking row also carries the promotion usage evidence (phone hash, card
identifier, device fingerprint, IP and used-at timestamp) so that usage
counts are plain filtered queries on this table.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Date as SQLDate,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_hotel.db.base import Base
from budget_hotel.models.base import IntegerIdMixin, SoftDeleteMixin, TimestampMixin
from budget_hotel.models.enums import (
    BookingOrigin,
    BookingSource,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
)
from budget_hotel.models.hotel import Room
from budget_hotel.models.package import Package
from budget_hotel.models.promotion import Promotion
from budget_hotel.models.user import User

__all__ = ["Booking", "Review"]


def new_qr_token() -> str:
    return str(uuid4())


class Booking(IntegerIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    A stay on one room between two dates.

    Lifecycle: Pending -> Confirmed (payment) -> CheckedIn (scan) ->
    CheckedOut (scan on a later day, or sweep). Pending may be cancelled by
    the customer; Confirmed becomes NoShow once the grace period passes.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_booking_dates"),
        Index("ix_bookings_room_dates", "room_id", "check_in_date", "check_out_date"),
        Index("ix_bookings_promotion_used", "promotion_id", "promotion_used_at"),
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    room_id: Mapped[int] = mapped_column(
        ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    check_in_date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)
    check_out_date: Mapped[Date] = mapped_column(SQLDate, nullable=False)
    booking_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING, index=True
    )
    source: Mapped[BookingSource] = mapped_column(
        Enum(BookingSource), nullable=False, default=BookingSource.DIRECT
    )

    # Origin
    origin_kind: Mapped[BookingOrigin] = mapped_column(
        Enum(BookingOrigin), nullable=False, default=BookingOrigin.ROOM
    )
    package_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("packages.id", ondelete="SET NULL"), nullable=True
    )

    # Promotion usage evidence
    promotion_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("promotions.id", ondelete="SET NULL"), nullable=True
    )
    promotion_phone_number_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    promotion_card_identifier: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    promotion_device_fingerprint: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    promotion_ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    promotion_used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        comment="Set once payment succeeds; only these rows count as usage",
    )

    # Payment
    payment_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(Enum(PaymentMethod), nullable=True)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Cancellation
    cancellation_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    refund_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # Check-in
    qr_token: Mapped[Optional[str]] = mapped_column(
        String(36), nullable=True, unique=True, index=True, default=new_qr_token
    )
    check_in_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    check_out_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    user: Mapped[User] = relationship(back_populates="bookings")
    room: Mapped[Room] = relationship()
    promotion: Mapped[Optional[Promotion]] = relationship()
    package: Mapped[Optional[Package]] = relationship()
    reviews: Mapped[List["Review"]] = relationship(back_populates="booking")

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days

    @property
    def is_package_booking(self) -> bool:
        return self.origin_kind == BookingOrigin.PACKAGE

    @property
    def has_review(self) -> bool:
        return len(self.reviews) > 0

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, room_id={self.room_id}, "
            f"{self.check_in_date}->{self.check_out_date}, status={self.status})>"
        )


class Review(IntegerIdMixin, TimestampMixin, Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_review_rating"),
    )

    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    review_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)

    booking: Mapped[Booking] = relationship(back_populates="reviews")

"""
Promotion codes with abuse limits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from budget_hotel.db.base import Base
from budget_hotel.models.base import IntegerIdMixin, SoftDeleteMixin, TimestampMixin
from budget_hotel.models.enums import DiscountType


class Promotion(IntegerIdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Discount rule with a validity window, optional minimums, an optional
    global cap and four independent per-dimension usage limits.

    Attributes:
        code: Customer-facing code (unique)
        discount_type: Percentage or FixedAmount
        value: Percent (0-100) or flat amount, depending on ``discount_type``
        start_date/end_date: Inclusive validity window
        limit_per_phone_number: Count prior uses by encrypted phone number
        limit_per_payment_card: Count prior uses by card identifier
        limit_per_device: Count prior uses by device fingerprint or IP
        limit_per_user_account: Count prior uses by user id
        max_uses_per_limit: Shared cap for every enabled dimension
        max_total_uses: Optional global cap across all customers
    """

    __tablename__ = "promotions"
    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_promotion_value"),
        CheckConstraint("max_uses_per_limit BETWEEN 1 AND 1000", name="ck_promotion_max_uses_per_limit"),
        CheckConstraint("end_date >= start_date", name="ck_promotion_window"),
    )

    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    discount_type: Mapped[DiscountType] = mapped_column(Enum(DiscountType), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    limit_per_phone_number: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    limit_per_payment_card: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    limit_per_device: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    limit_per_user_account: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_uses_per_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    minimum_nights: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    minimum_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    max_total_uses: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def is_within_window(self, now: datetime) -> bool:
        return self.start_date <= now <= self.end_date

    def __repr__(self) -> str:
        return f"<Promotion(id={self.id}, code={self.code}, active={self.is_active})>"

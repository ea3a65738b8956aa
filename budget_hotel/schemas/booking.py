"""
Booking request and response schemas.

Date ordering and payment field completeness are checked by the booking
service so that callers get the same messages whichever surface they use.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from budget_hotel.models.base import MAX_ID
from budget_hotel.models.enums import (
    BookingOrigin,
    BookingSource,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
)
from budget_hotel.schemas.common import BaseSchema

__all__ = [
    "BookingCreate",
    "PaymentRequest",
    "BookingResponse",
    "BookingSummary",
    "BookingDetailResponse",
    "PackageLineResponse",
    "PackageInfo",
    "AvailabilityResponse",
    "BookingActionResponse",
]


class BookingCreate(BaseSchema):
    room_type_id: int = Field(..., gt=0, le=MAX_ID)
    check_in: Date
    check_out: Date
    promotion_id: Optional[int] = Field(default=None, gt=0, le=MAX_ID)
    package_id: Optional[int] = Field(default=None, gt=0, le=MAX_ID)
    source: BookingSource = BookingSource.DIRECT


class PaymentRequest(BaseSchema):
    """Simulated payment capture; which fields are required depends on the method."""

    payment_method: Optional[PaymentMethod] = None

    # Credit card
    card_number: Optional[str] = Field(default=None, max_length=30)
    cardholder_name: Optional[str] = Field(default=None, max_length=100)
    expiry_month: Optional[int] = Field(default=None, ge=1, le=12)
    expiry_year: Optional[int] = Field(default=None, ge=2000, le=2100)
    cvv: Optional[str] = Field(default=None, max_length=4)

    # PayPal
    paypal_email: Optional[str] = Field(default=None, max_length=255)

    # Bank transfer
    bank_name: Optional[str] = Field(default=None, max_length=100)
    account_number: Optional[str] = Field(default=None, max_length=50)
    account_holder_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("card_number")
    @classmethod
    def card_number_characters(cls, v: Optional[str]) -> Optional[str]:
        if v and not all(ch.isdigit() or ch in " -" for ch in v):
            raise ValueError("Card number may only contain digits, spaces and dashes")
        return v

    def missing_details_message(self) -> Optional[str]:
        """User-facing message when the chosen method lacks required fields."""
        if self.payment_method is None:
            return "Please select a payment method."
        if self.payment_method == PaymentMethod.CREDIT_CARD:
            if not (self.card_number and self.cardholder_name and self.expiry_month
                    and self.expiry_year and self.cvv):
                return "Please fill in all credit card details."
        elif self.payment_method == PaymentMethod.PAYPAL:
            if not self.paypal_email:
                return "Please enter your PayPal email."
        elif self.payment_method == PaymentMethod.BANK_TRANSFER:
            if not (self.bank_name and self.account_number and self.account_holder_name):
                return "Please fill in all bank transfer details."
        return None


class BookingResponse(BaseSchema):
    id: int
    user_id: int
    room_id: int
    room_number: Optional[str] = None
    room_type_name: Optional[str] = None
    check_in_date: Date
    check_out_date: Date
    nights: int
    booking_date: datetime
    total_price: Decimal
    status: BookingStatus
    source: BookingSource
    origin_kind: BookingOrigin
    package_id: Optional[int] = None
    promotion_id: Optional[int] = None
    payment_method: Optional[PaymentMethod] = None
    payment_status: PaymentStatus
    payment_amount: Optional[Decimal] = None
    transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    cancellation_date: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    qr_token: Optional[str] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking) -> "BookingResponse":
        response = cls.model_validate(booking)
        if booking.room is not None:
            response.room_number = booking.room.room_number
            if booking.room.room_type is not None:
                response.room_type_name = booking.room.room_type.name
        return response


class BookingSummary(BookingResponse):
    can_review: bool = False
    has_review: bool = False


class PackageLineResponse(BaseSchema):
    kind: str
    target_id: int
    name: Optional[str] = None
    quantity: int


class PackageInfo(BaseSchema):
    id: int
    name: str
    total_price: Decimal
    lines: List[PackageLineResponse] = Field(default_factory=list)


class BookingDetailResponse(BookingSummary):
    package_details: Optional[PackageInfo] = None


class AvailabilityResponse(BaseSchema):
    room_type_id: int
    check_in: Date
    check_out: Date
    nights: int
    available_rooms: int


class BookingActionResponse(BaseSchema):
    success: bool = True
    message: Optional[str] = None
    booking: BookingResponse

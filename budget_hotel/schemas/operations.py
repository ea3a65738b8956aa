"""
Schemas for promotions, QR scans and maintenance runs.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from budget_hotel.models.enums import BookingStatus, DiscountType
from budget_hotel.schemas.common import BaseSchema

__all__ = [
    "PromotionResponse",
    "QrScanRequest",
    "ScanResponse",
    "SweepResponse",
]


class PromotionResponse(BaseSchema):
    id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Decimal
    start_date: datetime
    end_date: datetime
    minimum_nights: Optional[int] = None
    minimum_amount: Optional[Decimal] = None


class QrScanRequest(BaseSchema):
    """Raw text read by the front desk scanner: a full QR payload or a bare booking id."""

    scanned_data: Optional[str] = Field(default=None, max_length=1000)


class ScanResponse(BaseSchema):
    success: bool = True
    message: str
    action: str
    booking_id: int
    status: BookingStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None


class SweepResponse(BaseSchema):
    bookings_updated: int
    checked_out: List[int] = Field(default_factory=list)
    no_show: List[int] = Field(default_factory=list)
    promotions_deactivated: int = 0

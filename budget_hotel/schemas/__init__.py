from budget_hotel.schemas.booking import (
    AvailabilityResponse,
    BookingActionResponse,
    BookingCreate,
    BookingDetailResponse,
    BookingResponse,
    BookingSummary,
    PackageInfo,
    PackageLineResponse,
    PaymentRequest,
)
from budget_hotel.schemas.common import Actor, BaseSchema
from budget_hotel.schemas.operations import (
    PromotionResponse,
    QrScanRequest,
    ScanResponse,
    SweepResponse,
)

__all__ = [
    "Actor",
    "AvailabilityResponse",
    "BookingActionResponse",
    "BaseSchema",
    "BookingCreate",
    "BookingDetailResponse",
    "BookingResponse",
    "BookingSummary",
    "PackageInfo",
    "PackageLineResponse",
    "PaymentRequest",
    "PromotionResponse",
    "QrScanRequest",
    "ScanResponse",
    "SweepResponse",
]

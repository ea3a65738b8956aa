"""
Database models. Importing this package registers every table on ``Base.metadata``.
"""

from budget_hotel.models.enums import (
    BookingOrigin,
    BookingSource,
    BookingStatus,
    DiscountType,
    PackageItemKind,
    PaymentMethod,
    PaymentStatus,
    RoomStatus,
    UserRole,
)
from budget_hotel.models.base import MAX_ID
from budget_hotel.models.user import User
from budget_hotel.models.hotel import Hotel, Room, RoomType
from budget_hotel.models.package import Package, PackageItem, PackageLine, RoomItem, Service, ServiceItem
from budget_hotel.models.promotion import Promotion
from budget_hotel.models.booking import Booking, Review
from budget_hotel.models.security_log import SecurityLog

__all__ = [
    "MAX_ID",
    "BookingOrigin",
    "BookingSource",
    "BookingStatus",
    "DiscountType",
    "PackageItemKind",
    "PaymentMethod",
    "PaymentStatus",
    "RoomStatus",
    "UserRole",
    "User",
    "Hotel",
    "Room",
    "RoomType",
    "Package",
    "PackageItem",
    "PackageLine",
    "RoomItem",
    "Service",
    "ServiceItem",
    "Promotion",
    "Booking",
    "Review",
    "SecurityLog",
]

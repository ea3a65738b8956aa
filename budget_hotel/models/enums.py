"""
Database enums shared by models, services and schemas.
"""

import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    CUSTOMER = "customer"
    STAFF = "staff"
    MANAGER = "manager"
    ADMIN = "admin"

    @property
    def is_staff_member(self) -> bool:
        return self in (UserRole.STAFF, UserRole.MANAGER, UserRole.ADMIN)


class RoomStatus(str, enum.Enum):
    """Physical room status. Only Available rooms are offered; it never replaces the booking overlap check."""
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    UNDER_MAINTENANCE = "UnderMaintenance"
    CLEANING = "Cleaning"


class BookingStatus(str, enum.Enum):
    """Booking lifecycle status."""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"
    NO_SHOW = "NoShow"

    @classmethod
    def terminal(cls) -> tuple:
        """Statuses that no longer hold a room."""
        return (cls.CANCELLED, cls.CHECKED_OUT, cls.NO_SHOW)


class BookingSource(str, enum.Enum):
    DIRECT = "Direct"
    OTA = "OTA"
    GROUP = "Group"
    PHONE = "Phone"
    WALK_IN = "WalkIn"


class BookingOrigin(str, enum.Enum):
    """Whether a booking was made for a room type or through a package."""
    ROOM = "Room"
    PACKAGE = "Package"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "CreditCard"
    PAYPAL = "PayPal"
    BANK_TRANSFER = "BankTransfer"

    @property
    def transaction_prefix(self) -> str:
        return {
            PaymentMethod.CREDIT_CARD: "CC",
            PaymentMethod.PAYPAL: "PP",
            PaymentMethod.BANK_TRANSFER: "BT",
        }[self]


class DiscountType(str, enum.Enum):
    PERCENTAGE = "Percentage"
    FIXED_AMOUNT = "FixedAmount"


class PackageItemKind(str, enum.Enum):
    ROOM = "room"
    SERVICE = "service"

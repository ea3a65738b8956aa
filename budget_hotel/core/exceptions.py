"""
Exceptions raised at the HTTP boundary and on bad configuration.

Services report expected failures through ``ServiceResult``; the API layer
turns a failed result into one of these, and the registered handler renders
it as ``{"error": {"message", "code", "details", "type"}}``.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes returned to API clients"""
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"

    # Caller identity
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Booking rules
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INVALID_BOOKING_STATE = "INVALID_BOOKING_STATE"


class BaseAppException(Exception):
    """Application error carrying its code, HTTP status and client-safe details."""

    status_code = 500
    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


# ========================================
# Booking rules
# ========================================

class BookingValidationError(BaseAppException):
    """A request the booking rules refuse: bad dates, no room, rejected promotion, missing payment details"""

    status_code = 422
    default_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details=details)


class ResourceNotFoundError(BaseAppException):
    """Unknown booking, room type, package or QR token, or one owned by somebody else"""

    status_code = 404
    default_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        super().__init__(
            message or f"{resource_type} not found.",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class BookingStateError(BaseAppException):
    """The booking's status does not allow the operation"""

    status_code = 409
    default_code = ErrorCode.INVALID_BOOKING_STATE


# ========================================
# Caller identity
# ========================================

class AuthenticationError(BaseAppException):
    """Missing or malformed identity headers"""

    status_code = 401
    default_code = ErrorCode.AUTHENTICATION_FAILED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(BaseAppException):
    """The caller's role does not allow the action"""

    status_code = 403
    default_code = ErrorCode.INSUFFICIENT_PERMISSIONS

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        required_roles: Optional[List[str]] = None
    ):
        super().__init__(message, details={"required_roles": required_roles} if required_roles else None)


# ========================================
# Infrastructure
# ========================================

class DatabaseError(BaseAppException):
    default_code = ErrorCode.DATABASE_ERROR

    def __init__(self, message: str = "A database error occurred. Please try again."):
        super().__init__(message)


class InvalidConfigurationError(BaseAppException):
    """A setting is missing or unusable; raised at startup"""

    default_code = ErrorCode.INVALID_CONFIGURATION

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message, details={"config_key": config_key})


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'BookingValidationError',
    'ResourceNotFoundError',
    'BookingStateError',
    'AuthenticationError',
    'AuthorizationError',
    'DatabaseError',
    'InvalidConfigurationError',
]

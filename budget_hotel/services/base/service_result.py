"""
Result envelope returned by every service operation.

Expected failures (a rule refused the request, the booking is missing, the
status does not allow the action) come back as a failed ``ServiceResult``
whose message is shown to the customer as-is. Only infrastructure failures
are logged as errors.
"""

from typing import TypeVar, Generic, Optional, Any, Dict
from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Why a service operation failed."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"


@dataclass(frozen=True)
class ServiceError:
    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Success carries ``data``; failure carries ``error``. ``message`` is the
    user-facing text in both cases.
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Optional[TData] = None, message: Optional[str] = None) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message)

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    @classmethod
    def validation_failure(
        cls,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """A booking rule refused the request."""
        return cls.failure(ServiceError(ErrorCode.VALIDATION_ERROR, message, details, field))

    @classmethod
    def not_found(
        cls,
        resource_type: str,
        resource_id: Optional[Any] = None,
        message: Optional[str] = None,
    ) -> "ServiceResult[TData]":
        """
        The resource does not exist for this caller.

        The default message never says whether it exists for somebody else.
        """
        return cls.failure(
            ServiceError(
                ErrorCode.NOT_FOUND,
                message or f"{resource_type} not found.",
                details={
                    "resource_type": resource_type,
                    "resource_id": str(resource_id) if resource_id is not None else None,
                },
            )
        )

    @classmethod
    def invalid_state(cls, message: str, details: Optional[Dict[str, Any]] = None) -> "ServiceResult[TData]":
        """The booking's current status does not allow the operation."""
        return cls.failure(ServiceError(ErrorCode.INVALID_STATE, message, details))

    @classmethod
    def forbidden(cls, message: str) -> "ServiceResult[TData]":
        return cls.failure(ServiceError(ErrorCode.INSUFFICIENT_PERMISSIONS, message))

    @classmethod
    def internal_error(cls, message: str, details: Optional[Dict[str, Any]] = None) -> "ServiceResult[TData]":
        return cls.failure(ServiceError(ErrorCode.INTERNAL_ERROR, message, details))

    def __repr__(self) -> str:
        status = "Success" if self.is_success else "Failure"
        if self.message:
            return f"ServiceResult({status}: {self.message})"
        return f"ServiceResult({status})"


__all__ = [
    "ErrorCode",
    "ServiceError",
    "ServiceResult",
]

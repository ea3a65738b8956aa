"""
FastAPI dependencies: database session, caller identity, client signals and
service construction.

Authentication happens upstream; the caller arrives as ``X-User-Id`` and
``X-User-Role`` headers.
"""

import base64
from datetime import datetime
from typing import Callable, Generator, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from budget_hotel.config.settings import Settings
from budget_hotel.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BaseAppException,
    BookingStateError,
    BookingValidationError,
    ResourceNotFoundError,
)
from budget_hotel.core.logging import user_id as user_id_var
from budget_hotel.core.security import EncryptionService
from budget_hotel.models import MAX_ID, UserRole
from budget_hotel.schemas.common import Actor
from budget_hotel.services import (
    AvailabilityService,
    BookingService,
    CheckInService,
    PromotionValidationService,
    SecurityLogger,
)
from budget_hotel.services.base import ErrorCode as ServiceErrorCode, ServiceResult

FINGERPRINT_LENGTH = 50


# --- Application state ---------------------------------------------------------

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_encryption(request: Request) -> EncryptionService:
    return request.app.state.encryption


def get_clock(request: Request) -> Callable[[], datetime]:
    return request.app.state.clock


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Yield a session from the application's session factory.

    Usage in FastAPI endpoints:
        @router.get("/items/")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


# --- Client signals ------------------------------------------------------------

def get_client_ip(request: Request) -> Optional[str]:
    """
    Get client IP address, considering proxy headers
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else None


def get_device_fingerprint(request: Request) -> str:
    """Coarse browser fingerprint from headers that rarely change between visits."""
    raw = "|".join(
        request.headers.get(name, "")
        for name in ("User-Agent", "Accept-Language", "Accept-Encoding")
    )
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")[:FINGERPRINT_LENGTH]


# --- Identity ------------------------------------------------------------------

async def get_current_actor(request: Request) -> Actor:
    """Caller identity from the upstream auth headers plus client signals."""
    raw_id = request.headers.get("X-User-Id")
    if not raw_id:
        raise AuthenticationError("Authentication required")
    try:
        user_id = int(raw_id)
    except ValueError:
        raise AuthenticationError("Invalid user identity")
    if not 0 < user_id <= MAX_ID:
        raise AuthenticationError("Invalid user identity")

    raw_role = (request.headers.get("X-User-Role") or UserRole.CUSTOMER.value).strip().lower()
    try:
        role = UserRole(raw_role)
    except ValueError:
        raise AuthenticationError("Invalid user role")

    user_id_var.set(str(user_id))
    return Actor(
        user_id=user_id,
        role=role,
        device_fingerprint=get_device_fingerprint(request),
        ip_address=get_client_ip(request),
    )


class StaffDependency:
    """Requires a staff, manager or admin caller"""

    def __call__(self, actor: Actor = Depends(get_current_actor)) -> Actor:
        if not actor.role.is_staff_member:
            raise AuthorizationError(
                "Staff access required",
                required_roles=[UserRole.STAFF.value, UserRole.MANAGER.value, UserRole.ADMIN.value],
            )
        return actor


get_staff_actor = StaffDependency()


# --- Services ------------------------------------------------------------------

def get_security_logger(request: Request) -> SecurityLogger:
    return SecurityLogger(request.app.state.session_factory, request.app.state.clock)


def get_booking_service(
    request: Request,
    db: Session = Depends(get_db),
) -> BookingService:
    settings = get_settings(request)
    return BookingService(
        db,
        get_encryption(request),
        clock=get_clock(request),
        security_logger=get_security_logger(request),
        currency=settings.CURRENCY,
        refund_percentage=settings.REFUND_PERCENTAGE,
        no_show_grace_days=settings.NO_SHOW_GRACE_DAYS,
    )


def get_availability_service(request: Request, db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db, get_clock(request))


def get_promotion_service(request: Request, db: Session = Depends(get_db)) -> PromotionValidationService:
    return PromotionValidationService(
        db, get_encryption(request), get_clock(request), get_settings(request).CURRENCY
    )


def get_check_in_service(request: Request, db: Session = Depends(get_db)) -> CheckInService:
    return CheckInService(db, get_clock(request), get_security_logger(request))


# --- Result mapping ------------------------------------------------------------

def unwrap_result(result: ServiceResult):
    """Return the data of a successful result or raise the matching HTTP error."""
    if result.is_success:
        return result.data

    error = result.error
    details = dict(error.details or {})
    if error.code == ServiceErrorCode.NOT_FOUND:
        raise ResourceNotFoundError(
            details.get("resource_type", "Resource"),
            details.get("resource_id"),
            message=error.message,
        )
    if error.code == ServiceErrorCode.VALIDATION_ERROR:
        raise BookingValidationError(error.message, field=error.field, details=details)
    if error.code == ServiceErrorCode.INVALID_STATE:
        raise BookingStateError(error.message, details=details)
    if error.code == ServiceErrorCode.INSUFFICIENT_PERMISSIONS:
        raise AuthorizationError(error.message)
    # Internal details stay in the logs
    raise BaseAppException(error.message)


__all__ = [
    "get_db",
    "get_settings",
    "get_encryption",
    "get_clock",
    "get_client_ip",
    "get_device_fingerprint",
    "get_current_actor",
    "get_staff_actor",
    "get_booking_service",
    "get_availability_service",
    "get_promotion_service",
    "get_check_in_service",
    "unwrap_result",
]

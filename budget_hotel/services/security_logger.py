"""
Security audit trail.

Entries are written in their own session after the caller's unit of work so
that an audit failure can never roll back a payment or a check-in. Failures
are logged and swallowed.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.logging import get_logger, get_security_logger
from budget_hotel.models import SecurityLog

logger = get_logger(__name__)


class SecurityActions:
    BOOKING_CREATED = "BookingCreated"
    PAYMENT_COMPLETED = "PaymentCompleted"
    BOOKING_CANCELLED = "BookingCancelled"
    PROMOTION_USED = "PromotionUsed"
    CHECK_IN = "CheckIn"
    CHECK_OUT = "CheckOut"


class SecurityLogger:
    def __init__(self, session_factory: Callable[[], Session], clock: Optional[Callable[[], datetime]] = None):
        self._session_factory = session_factory
        self._clock = clock or datetime.now
        self._events = get_security_logger()

    def log(
        self,
        action: str,
        user_id: Optional[int],
        ip_address: Optional[str],
        details: Optional[str] = None,
    ) -> bool:
        """
        Persist one security event.

        Returns:
            True when the entry was stored, False when storing failed
        """
        try:
            self._events.info(action, actor_id=user_id, ip_address=ip_address, details=details)
            with self._session_factory() as session:
                session.add(
                    SecurityLog(
                        action=action,
                        user_id=user_id,
                        ip_address=ip_address,
                        details=details,
                        timestamp=self._clock(),
                    )
                )
                session.commit()
            return True
        except Exception as e:
            logger.warning(f"Security log write failed for {action}: {e}")
            return False

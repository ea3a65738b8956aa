"""
Shared plumbing for the booking services.

Every service owns one session, reads time only through an injected clock
and turns unexpected failures into an ``INTERNAL_ERROR`` result with a
retry-later message. Repositories never commit; services do.
"""

from abc import ABC
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.logging import get_logger
from budget_hotel.services.base.service_result import ServiceResult

Clock = Callable[[], datetime]


class BaseService(ABC):

    def __init__(self, db_session: Session, clock: Optional[Clock] = None):
        """
        Args:
            db_session: Session used for every read and write of this service
            clock: Returns the current local time; tests pass a fixed clock
        """
        self.db: Session = db_session
        self._clock: Clock = clock or datetime.now
        self._logger = get_logger(__name__).bind(service=self.__class__.__name__)

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        user_message: str,
        entity_ref: Optional[Any] = None,
    ) -> ServiceResult:
        """
        Roll back the session and report an infrastructure failure.

        The caller sees ``user_message`` only; the exception goes to the log
        with the operation name and the booking, user or token involved.
        """
        self._rollback()
        context = {
            "operation": operation,
            "ref": None if entity_ref is None else str(entity_ref),
            "error_type": exception.__class__.__name__,
        }
        self._logger.error(f"{operation} failed: {exception}", exc_info=True, extra=context)
        return ServiceResult.internal_error(user_message, details=context)

    @contextmanager
    def transaction(self):
        """Commit when the block completes, roll back and re-raise otherwise."""
        try:
            yield self.db
        except Exception:
            self._rollback()
            raise
        self._commit()

    def _commit(self) -> None:
        self.db.commit()

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except Exception as e:
            # keep the original error as the one reported
            self._logger.warning(f"Rollback failed: {e}")

    def _log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._logger.info(f"{self.__class__.__name__}.{operation}", extra=details or {})

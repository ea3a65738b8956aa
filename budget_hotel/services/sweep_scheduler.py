"""
Periodic maintenance sweep.

Runs the booking status sweep and the promotion deactivation pass once on
start and then on a fixed interval. Each run happens in a worker thread with
its own database session so request handling is never blocked.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.logging import get_logger
from budget_hotel.services.booking_status_service import BookingStatusService
from budget_hotel.services.promotion_validation_service import PromotionValidationService

logger = get_logger(__name__)


@dataclass
class SweepReport:
    checked_out: List[int] = field(default_factory=list)
    no_show: List[int] = field(default_factory=list)
    promotions_deactivated: int = 0

    @property
    def bookings_updated(self) -> int:
        return len(self.checked_out) + len(self.no_show)


def run_sweep(
    session: Session,
    encryption,
    clock: Optional[Callable[[], datetime]] = None,
    no_show_grace_days: int = 1,
    currency: str = "RM",
) -> SweepReport:
    """One maintenance pass on the given session. Database errors propagate."""
    statuses = BookingStatusService(session, clock, no_show_grace_days).update_booking_statuses()
    deactivated = PromotionValidationService(session, encryption, clock, currency).deactivate_invalid_promotions()
    return SweepReport(
        checked_out=statuses.checked_out,
        no_show=statuses.no_show,
        promotions_deactivated=deactivated,
    )


class SweepScheduler:
    """Background task driving ``run_sweep`` on an interval."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        encryption,
        interval_seconds: int = 3600,
        clock: Optional[Callable[[], datetime]] = None,
        no_show_grace_days: int = 1,
        currency: str = "RM",
    ):
        self._session_factory = session_factory
        self._encryption = encryption
        self._interval = interval_seconds
        self._clock = clock
        self._grace_days = no_show_grace_days
        self._currency = currency
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Future] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def run_once(self) -> SweepReport:
        """Run one pass synchronously in a fresh session."""
        with self._session_factory() as session:
            report = run_sweep(session, self._encryption, self._clock, self._grace_days, self._currency)
        if report.bookings_updated or report.promotions_deactivated:
            logger.info(
                f"Maintenance sweep updated {report.bookings_updated} booking(s), "
                f"deactivated {report.promotions_deactivated} promotion(s)",
                extra={
                    "checked_out": len(report.checked_out),
                    "no_show": len(report.no_show),
                    "promotions_deactivated": report.promotions_deactivated,
                },
            )
        return report

    async def start(self) -> None:
        if self._running:
            logger.warning("Sweep scheduler is already running")
            return
        self._running = True
        self._task = asyncio.create_task(self._worker())
        logger.info(f"Sweep scheduler started (every {self._interval}s)")

    async def stop(self) -> None:
        """Cancel the loop, then wait for a pass already running in its worker thread."""
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        if self._in_flight is not None:
            try:
                await self._in_flight
            except Exception as e:
                logger.error(f"Maintenance sweep failed during shutdown: {e}", exc_info=True)
            self._in_flight = None
        logger.info("Sweep scheduler stopped")

    async def _worker(self) -> None:
        while self._running:
            # Cancelling the loop must not abandon a pass that holds a session
            self._in_flight = asyncio.ensure_future(asyncio.to_thread(self.run_once))
            try:
                await asyncio.shield(self._in_flight)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Maintenance sweep failed: {e}", exc_info=True)
            self._in_flight = None
            await asyncio.sleep(self._interval)

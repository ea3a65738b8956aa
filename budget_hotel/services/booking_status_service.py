"""
Date-driven booking status sweep.

- CheckedIn bookings whose check-out date is before today become CheckedOut.
- Confirmed bookings, and unpaid Pending ones, whose check-in date is at
  least the grace period in the past become NoShow.

The sweep only moves bookings forward, so running it repeatedly or from
several workers at once leaves the same end state.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from budget_hotel.models import BookingStatus
from budget_hotel.repositories import BookingRepository
from budget_hotel.services.base import BaseService, Clock


@dataclass
class StatusSweepResult:
    checked_out: List[int] = field(default_factory=list)
    no_show: List[int] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.checked_out) + len(self.no_show)


class BookingStatusService(BaseService):
    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        no_show_grace_days: int = 1,
    ):
        super().__init__(db_session, clock)
        self.no_show_grace_days = no_show_grace_days
        self.bookings = BookingRepository(db_session)

    def update_booking_statuses(self) -> StatusSweepResult:
        """
        Apply the automatic check-out and no-show transitions and commit.

        Raises:
            SQLAlchemyError: Propagated after rollback so callers decide how to report it
        """
        today = self.today()
        cutoff = today - timedelta(days=self.no_show_grace_days)
        result = StatusSweepResult()

        with self.transaction():
            for booking in self.bookings.find_overdue_checked_in(today):
                booking.status = BookingStatus.CHECKED_OUT
                result.checked_out.append(booking.id)
                self._logger.info(
                    f"Auto check-out: Booking {booking.id} status changed to CheckedOut",
                    extra={"booking_id": booking.id},
                )

            for booking in self.bookings.find_no_show_candidates(cutoff):
                booking.status = BookingStatus.NO_SHOW
                result.no_show.append(booking.id)
                self._logger.info(
                    f"Auto no-show: Booking {booking.id} status changed to NoShow",
                    extra={"booking_id": booking.id},
                )

        if result.updated_count:
            self._logger.info(
                f"Automatically updated {result.updated_count} booking status(es)",
                extra={"checked_out": len(result.checked_out), "no_show": len(result.no_show)},
            )
        return result

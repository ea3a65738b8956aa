"""
QR driven check-in and check-out.

Both entry points (the per-booking QR token link and the staff scanner that
reads the printed payload) share one transition:

- Pending or Confirmed: check in, stamping ``check_in_time``.
- CheckedIn: check out, but only on a later calendar day than check-in.
- CheckedOut: no change, reported as already checked out.
- Anything else: refused with the current status.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_hotel.models import Booking, BookingStatus
from budget_hotel.repositories import BookingRepository
from budget_hotel.services.base import BaseService, Clock, ServiceResult
from budget_hotel.services.qr_service import QrPayloadError, parse_booking_id
from budget_hotel.services.security_logger import SecurityActions, SecurityLogger

INVALID_QR_TOKEN = "Invalid or expired QR code."
CHECK_IN_SUCCESSFUL = "Check-In Successful!"
CHECK_OUT_SUCCESSFUL = "Check-Out Successful!"
SAME_DAY_CHECK_OUT = "Guest is already Checked In. Cannot Check-Out on the same day."
ALREADY_CHECKED_OUT = "This booking is already Checked Out."
SCAN_FAILED = "Unable to process the scan. Please try again."


def booking_not_found_message(booking_id: int) -> str:
    return f"Booking #{booking_id} not found."


def status_not_processable_message(status: BookingStatus) -> str:
    return f"Booking status is {status.value}. Cannot process."


class ScanAction(str, enum.Enum):
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    ALREADY_CHECKED_OUT = "already_checked_out"


@dataclass(frozen=True)
class ScanOutcome:
    booking: Booking
    action: ScanAction
    message: str


class CheckInService(BaseService):
    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        security_logger: Optional[SecurityLogger] = None,
    ):
        super().__init__(db_session, clock)
        self.bookings = BookingRepository(db_session)
        self.security_logger = security_logger

    def check_in_by_token(self, qr_token: str) -> ServiceResult[ScanOutcome]:
        """Process a scan of the booking's QR token link."""
        try:
            booking = self.bookings.find_by_qr_token(str(qr_token))
        except SQLAlchemyError as e:
            return self._handle_exception(e, "look up QR token", SCAN_FAILED, qr_token)
        if booking is None:
            return ServiceResult.not_found("Booking", message=INVALID_QR_TOKEN)
        return self._advance(booking)

    def scan_payload(self, scanned_data: Optional[str], staff_user_id: Optional[int] = None,
                     ip_address: Optional[str] = None) -> ServiceResult[ScanOutcome]:
        """Process raw text read by the staff scanner (payload or bare booking id)."""
        try:
            booking_id = parse_booking_id(scanned_data or "")
        except QrPayloadError as e:
            return ServiceResult.validation_failure(str(e), field="scanned_data")

        try:
            booking = self.bookings.find_by_id(booking_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, "look up scanned booking", SCAN_FAILED, booking_id)
        if booking is None:
            return ServiceResult.not_found("Booking", booking_id, message=booking_not_found_message(booking_id))

        return self._advance(booking, staff_user_id, ip_address)

    def _advance(self, booking: Booking, actor_id: Optional[int] = None,
                 ip_address: Optional[str] = None) -> ServiceResult[ScanOutcome]:
        now = self.now()

        if booking.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            booking.status = BookingStatus.CHECKED_IN
            booking.check_in_time = now
            action, message = ScanAction.CHECKED_IN, CHECK_IN_SUCCESSFUL

        elif booking.status == BookingStatus.CHECKED_IN:
            if booking.check_in_time is None:
                booking.check_in_time = now.replace(hour=0, minute=0, second=0, microsecond=0)
            if now.date() <= booking.check_in_time.date():
                self._commit_quietly(booking)
                return ServiceResult.invalid_state(
                    SAME_DAY_CHECK_OUT, details={"booking_id": booking.id, "status": booking.status.value}
                )
            booking.status = BookingStatus.CHECKED_OUT
            booking.check_out_time = now
            action, message = ScanAction.CHECKED_OUT, CHECK_OUT_SUCCESSFUL

        elif booking.status == BookingStatus.CHECKED_OUT:
            return ServiceResult.success(
                ScanOutcome(booking, ScanAction.ALREADY_CHECKED_OUT, ALREADY_CHECKED_OUT),
                message=ALREADY_CHECKED_OUT,
            )

        else:
            return ServiceResult.invalid_state(
                status_not_processable_message(booking.status),
                details={"booking_id": booking.id, "status": booking.status.value},
            )

        try:
            self._commit()
        except SQLAlchemyError as e:
            return self._handle_exception(e, "save scan result", SCAN_FAILED, booking.id)

        self._log_operation("scan", {"booking_id": booking.id, "action": action.value})
        if self.security_logger is not None:
            self.security_logger.log(
                SecurityActions.CHECK_IN if action == ScanAction.CHECKED_IN else SecurityActions.CHECK_OUT,
                actor_id,
                ip_address,
                f"Booking #{booking.id}",
            )
        return ServiceResult.success(ScanOutcome(booking, action, message), message=message)

    def _commit_quietly(self, booking: Booking) -> None:
        """Persist a back-filled check-in time; the scan result does not depend on it."""
        if not self.db.is_modified(booking):
            return
        try:
            self._commit()
        except SQLAlchemyError as e:
            self._rollback()
            self._logger.warning(f"Could not back-fill check-in time for booking #{booking.id}: {e}")

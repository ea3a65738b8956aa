"""
Outbound notifications. Email delivery is handled outside this service;
here the intent to notify is only logged.
"""

from budget_hotel.core.logging import get_logger
from budget_hotel.models import Booking


class NotificationService:
    def __init__(self, currency: str = "RM"):
        self.currency = currency
        self._logger = get_logger(self.__class__.__name__)

    def send_booking_confirmation(self, booking: Booking) -> None:
        """Log that a confirmation email with the booking QR code should be sent."""
        self._logger.info(
            f"Booking confirmation email queued for booking #{booking.id}",
            extra={
                "booking_id": booking.id,
                "recipient": booking.user.email if booking.user else None,
                "amount": f"{self.currency} {booking.total_price:.2f}",
                "transaction_id": booking.transaction_id,
            },
        )

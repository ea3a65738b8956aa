"""
Customer booking lifecycle: create, pay, cancel and read back.

Staff roles manage bookings from the admin surface and are refused here.
Every lookup is scoped to the calling user; a booking that belongs to
somebody else is reported exactly like one that does not exist.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_hotel.core.security import EncryptionService
from budget_hotel.models import (
    Booking,
    BookingStatus,
    Package,
    PaymentMethod,
    PaymentStatus,
    User,
)
from budget_hotel.models.booking import new_qr_token
from budget_hotel.repositories import (
    BookingRepository,
    PackageRepository,
    RoomTypeRepository,
    UserRepository,
)
from budget_hotel.schemas.booking import BookingCreate, PaymentRequest
from budget_hotel.schemas.common import Actor
from budget_hotel.services.availability_service import (
    NO_ROOMS_AVAILABLE,
    AvailabilityService,
    validate_stay_dates,
)
from budget_hotel.services.base import BaseService, Clock, ServiceResult
from budget_hotel.services.booking_status_service import BookingStatusService
from budget_hotel.services.notification_service import NotificationService
from budget_hotel.services.pricing_service import ZERO, quote, to_money
from budget_hotel.services.promotion_validation_service import PromotionValidationService
from budget_hotel.services.qr_service import build_payload
from budget_hotel.services.security_logger import SecurityActions, SecurityLogger

# -----------------------------------------------------------------------------
# Messages
# -----------------------------------------------------------------------------

STAFF_CANNOT_BOOK = (
    "Administrators, Managers, and Staff cannot create bookings. "
    "Please use a customer account."
)
STAFF_CANNOT_LIST = (
    "Administrators, Managers, and Staff cannot access customer booking features. "
    "Please use the Admin panel to manage bookings."
)
STAFF_CANNOT_VIEW_DETAILS = (
    "Administrators, Managers, and Staff cannot access customer booking features. "
    "Please use the Admin panel to view booking details."
)
STAFF_CANNOT_CANCEL = (
    "Administrators, Managers, and Staff cannot cancel bookings. "
    "Please use the Admin panel to manage bookings."
)
STAFF_CANNOT_VIEW_RECEIPT = (
    "Administrators, Managers, and Staff cannot access customer booking features. "
    "Please use the Admin panel to view booking receipts."
)

BOOKING_CREATED = "Booking created successfully. Please proceed to payment."
CREATE_FAILED = "An error occurred while creating your booking. Please try again."

ALREADY_PROCESSED = "This booking has already been processed."
PAYMENT_SUCCESSFUL = "Payment successful! Your booking is confirmed."
PAYMENT_FAILED = (
    "An error occurred while processing your payment. Please try again or contact support."
)

CANCEL_BLOCKED_BY_STATUS = {
    BookingStatus.CANCELLED: "This booking is already cancelled.",
    BookingStatus.CONFIRMED: "Cannot cancel a confirmed booking. Please contact support for assistance.",
    BookingStatus.CHECKED_IN: "Cannot cancel a booking that has already been checked in.",
    BookingStatus.CHECKED_OUT: "Cannot cancel a booking that has already been checked out.",
    BookingStatus.NO_SHOW: "Cannot cancel a no-show booking.",
}
CANCEL_REVIEWED = "Cannot cancel a booking that has been reviewed."
CANCEL_PAST_CHECK_IN = "Cannot cancel a booking with a check-in date in the past."
CANCELLATION_REASON = "Cancelled by customer"
BOOKING_CANCELLED = "Booking cancelled successfully."
CANCEL_FAILED = (
    "An error occurred while cancelling your booking. Please try again or contact support."
)

LOAD_FAILED = "Unable to load your bookings. Please try again."

REVIEWABLE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT)

_TICKS_EPOCH = datetime(1, 1, 1)


def generate_transaction_id(method: PaymentMethod, now: datetime) -> str:
    """
    ``<CC|PP|BT>-<yyyymmdd>-<digits>`` where the digits are the tail of the
    current time counted in 100ns ticks since 0001-01-01.
    """
    ticks = (now - _TICKS_EPOCH) // timedelta(microseconds=1) * 10
    return f"{method.transaction_prefix}-{now:%Y%m%d}-{str(ticks)[10:]}"


def refund_for(booking: Booking, refund_percentage: int) -> Decimal:
    """Refund owed on cancellation: a share of the total if the payment went through."""
    if booking.payment_status != PaymentStatus.COMPLETED:
        return ZERO
    return to_money(Decimal(booking.total_price) * Decimal(refund_percentage) / Decimal(100))


@dataclass(frozen=True)
class BookingView:
    booking: Booking
    can_review: bool
    has_review: bool
    package: Optional[Package] = None

    @classmethod
    def of(cls, booking: Booking) -> "BookingView":
        has_review = booking.has_review
        return cls(
            booking=booking,
            can_review=booking.status in REVIEWABLE_STATUSES and not has_review,
            has_review=has_review,
            package=booking.package if booking.is_package_booking else None,
        )


class BookingService(BaseService):
    """Customer-facing booking operations."""

    def __init__(
        self,
        db_session: Session,
        encryption: EncryptionService,
        clock: Optional[Clock] = None,
        security_logger: Optional[SecurityLogger] = None,
        notifier: Optional[NotificationService] = None,
        currency: str = "RM",
        refund_percentage: int = 80,
        no_show_grace_days: int = 1,
    ):
        super().__init__(db_session, clock)
        self.encryption = encryption
        self.security_logger = security_logger
        self.notifier = notifier or NotificationService(currency)
        self.refund_percentage = refund_percentage
        self.no_show_grace_days = no_show_grace_days

        self.bookings = BookingRepository(db_session)
        self.packages = PackageRepository(db_session)
        self.room_types = RoomTypeRepository(db_session)
        self.users = UserRepository(db_session)
        self.availability = AvailabilityService(db_session, clock)
        self.promotions = PromotionValidationService(db_session, encryption, clock, currency)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_booking(self, actor: Actor, request: BookingCreate) -> ServiceResult[Booking]:
        """
        Reserve a room of the requested type as a Pending booking.

        A chosen package fixes the price and the room type and disables the
        promotion. The promotion is validated here without a card number; its
        usage is only recorded once payment succeeds.
        """
        if not actor.is_customer:
            return ServiceResult.forbidden(STAFF_CANNOT_BOOK)

        reason = validate_stay_dates(request.check_in, request.check_out, self.today())
        if reason:
            return ServiceResult.validation_failure(reason, field="check_in")

        try:
            user = self.users.find_by_id(actor.user_id)
            if user is None:
                return ServiceResult.not_found("User", actor.user_id)

            package = None
            room_type_id = request.room_type_id
            if request.package_id is not None:
                package = self.packages.find_active_by_id(request.package_id)
                if package is None:
                    return ServiceResult.not_found("Package", request.package_id)
                room_type_id = package.room_type_id or room_type_id

            room_type = self.room_types.find_by_id(room_type_id)
            if room_type is None:
                return ServiceResult.not_found("Room type", room_type_id)

            room = self.availability.find_available_room(
                room_type_id, request.check_in, request.check_out, lock=True
            )
            if room is None:
                return ServiceResult.validation_failure(
                    NO_ROOMS_AVAILABLE, details={"room_type_id": room_type_id}
                )

            nights = (request.check_out - request.check_in).days
            promotion = None
            if request.promotion_id is not None and package is None:
                check = self.promotions.validate_usage(
                    promotion_id=request.promotion_id,
                    user_id=user.id,
                    phone_number=self._phone_of(user),
                    card_number=None,
                    device_fingerprint=actor.device_fingerprint,
                    ip_address=actor.ip_address,
                    total_amount=room_type.base_price * nights,
                    nights=nights,
                )
                if not check.is_valid:
                    # Keep any deactivation the validation pass made
                    self._commit()
                    return ServiceResult.validation_failure(check.error_message, field="promotion_id")
                promotion = check.promotion

            price = quote(room_type.base_price, nights, promotion=promotion, package=package)
            booking = Booking(
                user_id=user.id,
                room_id=room.id,
                check_in_date=request.check_in,
                check_out_date=request.check_out,
                booking_date=self.now(),
                total_price=price.total,
                status=BookingStatus.PENDING,
                source=request.source,
                origin_kind=price.origin,
                package_id=price.package_id,
                promotion_id=price.promotion_id,
                payment_status=PaymentStatus.PENDING,
                qr_token=new_qr_token(),
            )
            self.bookings.add(booking)
            self._commit()
        except SQLAlchemyError as e:
            return self._handle_exception(e, "create booking", CREATE_FAILED, actor.user_id)

        self._log_operation(
            "create_booking",
            {
                "booking_id": booking.id,
                "room_id": booking.room_id,
                "total_price": str(booking.total_price),
                "discount": str(price.discount),
            },
        )
        self._audit(SecurityActions.BOOKING_CREATED, actor, f"Booking #{booking.id}")
        return ServiceResult.success(booking, message=BOOKING_CREATED)

    # -------------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------------

    def process_payment(
        self,
        actor: Actor,
        booking_id: int,
        payment: PaymentRequest,
    ) -> ServiceResult[Booking]:
        """
        Capture a simulated payment and confirm the booking.

        Confirmation and promotion usage are committed together, so a
        confirmed booking never misses its usage evidence.
        """
        try:
            booking = self.bookings.find_for_user(booking_id, actor.user_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, "load booking for payment", PAYMENT_FAILED, booking_id)
        if booking is None:
            return ServiceResult.not_found("Booking", booking_id)

        if booking.status != BookingStatus.PENDING:
            return ServiceResult.invalid_state(
                ALREADY_PROCESSED, details={"booking_id": booking.id, "status": booking.status.value}
            )

        missing = payment.missing_details_message()
        if missing:
            return ServiceResult.validation_failure(missing, field="payment_method")

        now = self.now()
        try:
            booking.payment_method = payment.payment_method
            booking.payment_amount = booking.total_price
            booking.payment_status = PaymentStatus.COMPLETED
            booking.transaction_id = generate_transaction_id(payment.payment_method, now)
            booking.payment_date = now
            booking.status = BookingStatus.CONFIRMED

            if booking.promotion_id is not None:
                card_number = (
                    payment.card_number
                    if payment.payment_method == PaymentMethod.CREDIT_CARD
                    else None
                )
                self.promotions.record_usage(
                    promotion_id=booking.promotion_id,
                    booking_id=booking.id,
                    user_id=booking.user_id,
                    phone_number=self._phone_of(booking.user),
                    card_number=card_number,
                    device_fingerprint=actor.device_fingerprint,
                    ip_address=actor.ip_address,
                )
            self._commit()
        except SQLAlchemyError as e:
            return self._handle_exception(e, "process payment", PAYMENT_FAILED, booking_id)

        self._log_operation(
            "process_payment",
            {
                "booking_id": booking.id,
                "payment_method": booking.payment_method.value,
                "transaction_id": booking.transaction_id,
            },
        )
        self._audit(SecurityActions.PAYMENT_COMPLETED, actor, f"Booking #{booking.id} {booking.transaction_id}")
        if booking.promotion_id is not None:
            self._audit(
                SecurityActions.PROMOTION_USED, actor,
                f"Promotion {booking.promotion_id} on booking #{booking.id}",
            )
        self.notifier.send_booking_confirmation(booking)
        return ServiceResult.success(booking, message=PAYMENT_SUCCESSFUL)

    # -------------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------------

    def cancel_booking(self, actor: Actor, booking_id: int) -> ServiceResult[Booking]:
        if not actor.is_customer:
            return ServiceResult.forbidden(STAFF_CANNOT_CANCEL)

        try:
            booking = self.bookings.find_for_user(booking_id, actor.user_id)
            if booking is None:
                return ServiceResult.not_found("Booking", booking_id)

            blocked = CANCEL_BLOCKED_BY_STATUS.get(booking.status)
            if blocked:
                return ServiceResult.invalid_state(
                    blocked, details={"booking_id": booking.id, "status": booking.status.value}
                )
            if self.bookings.has_reviews(booking.id):
                return ServiceResult.invalid_state(CANCEL_REVIEWED, details={"booking_id": booking.id})
            if booking.check_in_date < self.today():
                return ServiceResult.invalid_state(CANCEL_PAST_CHECK_IN, details={"booking_id": booking.id})

            booking.status = BookingStatus.CANCELLED
            booking.cancellation_date = self.now()
            booking.cancellation_reason = CANCELLATION_REASON
            booking.refund_amount = refund_for(booking, self.refund_percentage)
            self._commit()
        except SQLAlchemyError as e:
            return self._handle_exception(e, "cancel booking", CANCEL_FAILED, booking_id)

        self._log_operation(
            "cancel_booking",
            {"booking_id": booking.id, "refund_amount": str(booking.refund_amount)},
        )
        self._audit(SecurityActions.BOOKING_CANCELLED, actor, f"Booking #{booking.id}")
        return ServiceResult.success(booking, message=BOOKING_CANCELLED)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_user_bookings(self, actor: Actor) -> ServiceResult[List[BookingView]]:
        """The caller's bookings, newest first, after bringing statuses up to date."""
        if not actor.is_customer:
            return ServiceResult.forbidden(STAFF_CANNOT_LIST)

        try:
            BookingStatusService(self.db, self._clock, self.no_show_grace_days).update_booking_statuses()
        except SQLAlchemyError as e:
            self._logger.warning(f"Status sweep before listing bookings failed: {e}")

        try:
            bookings = self.bookings.list_for_user(actor.user_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, "list bookings", LOAD_FAILED, actor.user_id)
        return ServiceResult.success([BookingView.of(b) for b in bookings])

    def get_booking_for_user(self, actor: Actor, booking_id: int) -> ServiceResult[BookingView]:
        if not actor.is_customer:
            return ServiceResult.forbidden(STAFF_CANNOT_VIEW_DETAILS)
        try:
            booking = self.bookings.find_for_user(booking_id, actor.user_id)
            if booking is None:
                return ServiceResult.not_found("Booking", booking_id)
            return ServiceResult.success(BookingView.of(booking))
        except SQLAlchemyError as e:
            return self._handle_exception(e, "load booking", LOAD_FAILED, booking_id)

    def get_confirmation(self, actor: Actor, booking_id: int) -> ServiceResult[Booking]:
        """Booking receipt; bookings created before QR tokens existed get one now."""
        if not actor.is_customer:
            return ServiceResult.forbidden(STAFF_CANNOT_VIEW_RECEIPT)
        try:
            booking = self.bookings.find_for_user(booking_id, actor.user_id)
            if booking is None:
                return ServiceResult.not_found("Booking", booking_id)
            if not booking.qr_token:
                booking.qr_token = new_qr_token()
                self._commit()
        except SQLAlchemyError as e:
            return self._handle_exception(e, "load confirmation", LOAD_FAILED, booking_id)
        return ServiceResult.success(booking)

    def get_qr_payload(self, actor: Actor, booking_id: int) -> ServiceResult[str]:
        """Text encoded in the booking's printable QR code."""
        try:
            booking = self.bookings.find_for_user(booking_id, actor.user_id)
        except SQLAlchemyError as e:
            return self._handle_exception(e, "load booking for QR", LOAD_FAILED, booking_id)
        if booking is None:
            return ServiceResult.not_found("Booking", booking_id)
        return ServiceResult.success(build_payload(booking))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _phone_of(self, user: Optional[User]) -> Optional[str]:
        if user is None or not user.phone_number_encrypted:
            return None
        try:
            return self.encryption.decrypt(user.phone_number_encrypted)
        except ValueError as e:
            self._logger.warning(
                f"Could not decrypt phone number of user {user.id}: {e}",
                extra={"user_id": user.id},
            )
            return None

    def _audit(self, action: str, actor: Actor, details: str) -> None:
        if self.security_logger is not None:
            self.security_logger.log(action, actor.user_id, actor.ip_address, details)

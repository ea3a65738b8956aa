"""
Promotion validation engine with abuse limits.

A promotion is checked against the booking context in a fixed order and the
first failing rule decides the message. Usage is only recorded once payment
succeeds, so a validated but unpaid booking never consumes a use.

Validation and recording flush their changes (promotion deactivations,
usage evidence) without committing; the calling service commits them with
its own unit of work.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.security import EncryptionService
from budget_hotel.models import Promotion
from budget_hotel.repositories import BookingRepository, PromotionRepository
from budget_hotel.services.base import BaseService, Clock


# -----------------------------------------------------------------------------
# Messages
# -----------------------------------------------------------------------------

INVALID_OR_INACTIVE = "Invalid or inactive promotion code."
OUTSIDE_DATE_WINDOW = "The selected promotion is not valid for the current date."
MAX_USAGE_REACHED = "This promotion has reached its maximum usage limit."
USED_WITH_PHONE = "This promotion has already been used with this phone number."
USED_WITH_CARD = "This promotion has already been used with this payment card."
USED_WITH_ACCOUNT = "This promotion has already been used with your account."
USED_FROM_DEVICE = "This promotion has already been used from this device or location."


def minimum_nights_message(nights: int) -> str:
    return f"This promotion requires a minimum stay of {nights} night(s)."


def minimum_amount_message(amount: Decimal, currency: str = "RM") -> str:
    return f"This promotion requires a minimum amount of {currency} {Decimal(amount):.2f}."


def card_identifier(card_number: str, encryption: EncryptionService) -> str:
    """
    Stable identifier for a payment card that never stores more than the last
    four digits in plain text.

    Spaces and dashes are stripped, the cleaned number is encrypted, and the
    result is ``<last4>-<first 8 chars of ciphertext>``. Numbers shorter than
    four characters yield only the first 16 characters of the ciphertext.
    """
    cleaned = card_number.replace(" ", "").replace("-", "")
    digest = encryption.encrypt(cleaned) or ""
    if len(cleaned) >= 4:
        return f"{cleaned[-4:]}-{digest[:8]}"
    return digest[:min(16, len(digest))]


@dataclass(frozen=True)
class PromotionCheck:
    is_valid: bool
    error_message: str = ""
    promotion: Optional[Promotion] = None

    @classmethod
    def ok(cls, promotion: Promotion) -> "PromotionCheck":
        return cls(True, "", promotion)

    @classmethod
    def rejected(cls, message: str, promotion: Optional[Promotion] = None) -> "PromotionCheck":
        return cls(False, message, promotion)


class PromotionValidationService(BaseService):
    """Evaluates and records promotion usage against per-dimension limits."""

    def __init__(
        self,
        db_session: Session,
        encryption: EncryptionService,
        clock: Optional[Clock] = None,
        currency: str = "RM",
    ):
        super().__init__(db_session, clock)
        self.encryption = encryption
        self.currency = currency
        self.promotions = PromotionRepository(db_session)
        self.bookings = BookingRepository(db_session)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_usage(
        self,
        promotion_id: int,
        user_id: int,
        phone_number: Optional[str],
        card_number: Optional[str],
        device_fingerprint: Optional[str],
        ip_address: Optional[str],
        total_amount: Decimal,
        nights: int,
    ) -> PromotionCheck:
        """
        Check whether the promotion may be applied to this booking context.

        Args:
            promotion_id: Promotion being applied
            user_id: Customer making the booking
            phone_number: Customer phone in plain text; skipped when empty
            card_number: Card number in plain text; skipped when empty
            device_fingerprint: Client fingerprint, may be None
            ip_address: Client IP, may be None
            total_amount: Undiscounted booking amount
            nights: Length of stay

        Returns:
            PromotionCheck with the first failing reason, or a valid check
        """
        now = self.now()
        self._deactivate_invalid(now)

        promotion = self.promotions.find_by_id(promotion_id)
        if promotion is None or not promotion.is_active:
            return PromotionCheck.rejected(INVALID_OR_INACTIVE, promotion)

        if not promotion.is_within_window(now):
            if promotion.end_date < now:
                self._deactivate(promotion, "expired")
            return PromotionCheck.rejected(OUTSIDE_DATE_WINDOW, promotion)

        if promotion.minimum_nights is not None and nights < promotion.minimum_nights:
            return PromotionCheck.rejected(minimum_nights_message(promotion.minimum_nights), promotion)

        if promotion.minimum_amount is not None and Decimal(total_amount) < promotion.minimum_amount:
            return PromotionCheck.rejected(
                minimum_amount_message(promotion.minimum_amount, self.currency), promotion
            )

        if promotion.max_total_uses is not None:
            if self.bookings.count_promotion_uses(promotion.id) >= promotion.max_total_uses:
                self._deactivate(promotion, "maximum usage reached")
                return PromotionCheck.rejected(MAX_USAGE_REACHED, promotion)

        limit = promotion.max_uses_per_limit

        if promotion.limit_per_phone_number and phone_number:
            phone_hash = self.encryption.encrypt(phone_number)
            if self.bookings.count_promotion_uses_by_phone(promotion.id, phone_hash) >= limit:
                return PromotionCheck.rejected(USED_WITH_PHONE, promotion)

        if promotion.limit_per_payment_card and card_number:
            identifier = card_identifier(card_number, self.encryption)
            if self.bookings.count_promotion_uses_by_card(promotion.id, identifier) >= limit:
                return PromotionCheck.rejected(USED_WITH_CARD, promotion)

        if promotion.limit_per_user_account:
            if self.bookings.count_promotion_uses_by_user(promotion.id, user_id) >= limit:
                return PromotionCheck.rejected(USED_WITH_ACCOUNT, promotion)

        if promotion.limit_per_device:
            uses = self.bookings.count_promotion_uses_by_device(
                promotion.id, device_fingerprint, ip_address
            )
            if uses >= limit:
                return PromotionCheck.rejected(USED_FROM_DEVICE, promotion)

        return PromotionCheck.ok(promotion)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_usage(
        self,
        promotion_id: int,
        booking_id: int,
        user_id: int,
        phone_number: Optional[str],
        card_number: Optional[str],
        device_fingerprint: Optional[str],
        ip_address: Optional[str],
    ) -> None:
        """
        Write usage evidence on the booking, then deactivate the promotion if
        this use reached its global cap.
        """
        booking = self.bookings.find_by_id(booking_id)
        if booking is not None:
            booking.promotion_id = promotion_id
            booking.promotion_phone_number_hash = (
                self.encryption.encrypt(phone_number) if phone_number else None
            )
            booking.promotion_card_identifier = (
                card_identifier(card_number, self.encryption) if card_number else None
            )
            booking.promotion_device_fingerprint = device_fingerprint
            booking.promotion_ip_address = ip_address
            booking.promotion_used_at = self.now()
            self.db.flush()
            self._logger.info(
                f"Recorded use of promotion {promotion_id} on booking #{booking_id}",
                extra={"promotion_id": promotion_id, "booking_id": booking_id},
            )

        promotion = self.promotions.find_by_id(promotion_id)
        if promotion is not None and promotion.is_active and promotion.max_total_uses is not None:
            if self.bookings.count_promotion_uses(promotion_id) >= promotion.max_total_uses:
                self._deactivate(promotion, "maximum usage reached")

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def deactivate_invalid_promotions(self) -> int:
        """
        Deactivate expired or exhausted promotions and commit.

        Promotions that have not started yet are left alone.

        Returns:
            Number of promotions deactivated
        """
        with self.transaction():
            return self._deactivate_invalid(self.now())

    def list_active_promotions(self) -> List[Promotion]:
        """Promotions a customer can pick right now, after a maintenance pass."""
        now = self.now()
        with self.transaction():
            self._deactivate_invalid(now)
        return self.promotions.find_currently_valid(now)

    def _deactivate_invalid(self, now: datetime) -> int:
        deactivated = 0
        for promotion in self.promotions.find_active():
            if promotion.end_date < now:
                self._deactivate(promotion, "expired")
                deactivated += 1
            elif promotion.max_total_uses is not None:
                if self.bookings.count_promotion_uses(promotion.id) >= promotion.max_total_uses:
                    self._deactivate(promotion, "maximum usage reached")
                    deactivated += 1
        return deactivated

    def _deactivate(self, promotion: Promotion, reason: str) -> None:
        promotion.is_active = False
        self.db.flush()
        self._logger.info(
            f"Promotion {promotion.code} deactivated: {reason}",
            extra={"promotion_id": promotion.id, "reason": reason},
        )

"""
Booking queries: ownership lookups, promotion usage counts and sweep candidates.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, selectinload

from budget_hotel.models import Booking, BookingStatus, Review
from budget_hotel.repositories.base import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(Booking, db)

    # ==================== Lookups ====================

    def find_for_user(self, booking_id: int, user_id: int) -> Optional[Booking]:
        """Booking by id, only when it belongs to the user."""
        return (
            self.query()
            .filter(Booking.id == booking_id, Booking.user_id == user_id)
            .first()
        )

    def find_by_qr_token(self, qr_token: str) -> Optional[Booking]:
        return self.query().filter(Booking.qr_token == qr_token).first()

    def list_for_user(self, user_id: int) -> List[Booking]:
        return (
            self.query()
            .options(selectinload(Booking.reviews))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc(), Booking.id.desc())
            .all()
        )

    def has_reviews(self, booking_id: int) -> bool:
        return self.db.query(Review.id).filter(Review.booking_id == booking_id).first() is not None

    # ==================== Promotion usage ====================
    # Soft-deleted bookings still count: deleting a row must not refund a use.

    def _usage_query(self, promotion_id: int) -> Query:
        return self.query(include_deleted=True).filter(
            Booking.promotion_id == promotion_id,
            Booking.promotion_used_at.isnot(None),
        )

    def count_promotion_uses(self, promotion_id: int) -> int:
        return self._usage_query(promotion_id).count()

    def count_promotion_uses_by_phone(self, promotion_id: int, phone_hash: str) -> int:
        return self._usage_query(promotion_id).filter(
            Booking.promotion_phone_number_hash == phone_hash
        ).count()

    def count_promotion_uses_by_card(self, promotion_id: int, card_identifier: str) -> int:
        return self._usage_query(promotion_id).filter(
            Booking.promotion_card_identifier == card_identifier
        ).count()

    def count_promotion_uses_by_user(self, promotion_id: int, user_id: int) -> int:
        return self._usage_query(promotion_id).filter(Booking.user_id == user_id).count()

    def count_promotion_uses_by_device(
        self,
        promotion_id: int,
        device_fingerprint: Optional[str],
        ip_address: Optional[str],
    ) -> int:
        """Uses matching the fingerprint or the IP; either match counts."""
        conditions = []
        if device_fingerprint:
            conditions.append(Booking.promotion_device_fingerprint == device_fingerprint)
        if ip_address:
            conditions.append(Booking.promotion_ip_address == ip_address)
        if not conditions:
            return 0
        return self._usage_query(promotion_id).filter(or_(*conditions)).count()

    # ==================== Sweep candidates ====================

    def find_overdue_checked_in(self, today: date) -> List[Booking]:
        """Checked-in stays whose check-out date has passed."""
        return (
            self.query()
            .filter(
                Booking.status == BookingStatus.CHECKED_IN,
                Booking.check_out_date < today,
            )
            .order_by(Booking.id)
            .all()
        )

    def find_no_show_candidates(self, cutoff: date) -> List[Booking]:
        """Confirmed or unpaid Pending bookings whose check-in date is on or before ``cutoff``."""
        return (
            self.query()
            .filter(
                Booking.status.in_((BookingStatus.CONFIRMED, BookingStatus.PENDING)),
                Booking.check_in_date <= cutoff,
            )
            .order_by(Booking.id)
            .all()
        )

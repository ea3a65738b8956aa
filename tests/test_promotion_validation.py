from datetime import timedelta
from decimal import Decimal

import pytest

from budget_hotel.models import DiscountType, Promotion
from budget_hotel.services import PromotionValidationService
from budget_hotel.services.promotion_validation_service import (
    INVALID_OR_INACTIVE,
    OUTSIDE_DATE_WINDOW,
    USED_FROM_DEVICE,
    USED_WITH_ACCOUNT,
    USED_WITH_CARD,
    USED_WITH_PHONE,
    card_identifier,
    minimum_amount_message,
    minimum_nights_message,
)

from conftest import CUSTOMER_PHONE

CARD = "4111 1111 1111 1234"


@pytest.fixture
def promotions(db, encryption, clock):
    return PromotionValidationService(db, encryption, clock)


@pytest.fixture
def validate(promotions, seed):
    def _validate(promotion, **overrides):
        context = dict(
            promotion_id=promotion.id,
            user_id=seed.customer.id,
            phone_number=CUSTOMER_PHONE,
            card_number=None,
            device_fingerprint="fp-alice",
            ip_address="10.0.0.1",
            total_amount=Decimal("239.97"),
            nights=3,
        )
        context.update(overrides)
        return promotions.validate_usage(**context)

    return _validate


@pytest.fixture
def prior_use(make_booking, seed, clock):
    """A paid booking that already consumed the promotion."""
    def _use(promotion, user=None, **evidence):
        return make_booking(
            user=user or seed.other,
            promotion_id=promotion.id,
            promotion_used_at=clock(),
            **evidence,
        )

    return _use


def test_valid_promotion(validate, make_promotion):
    promotion = make_promotion()
    check = validate(promotion)

    assert check.is_valid
    assert check.error_message == ""
    assert check.promotion.id == promotion.id


def test_unknown_promotion(validate, seed):
    check = validate(Promotion(id=9999))
    assert not check.is_valid
    assert check.error_message == INVALID_OR_INACTIVE


def test_inactive_promotion(validate, make_promotion):
    check = validate(make_promotion(is_active=False))
    assert check.error_message == INVALID_OR_INACTIVE


def test_not_started_promotion_stays_active(validate, make_promotion, clock, db):
    promotion = make_promotion(start_date=clock() + timedelta(days=2))

    check = validate(promotion)

    assert check.error_message == OUTSIDE_DATE_WINDOW
    db.refresh(promotion)
    assert promotion.is_active


def test_expired_promotion_is_deactivated_before_lookup(validate, make_promotion, clock, db):
    promotion = make_promotion(
        start_date=clock() - timedelta(days=10),
        end_date=clock() - timedelta(minutes=1),
    )

    check = validate(promotion)

    assert check.error_message == INVALID_OR_INACTIVE
    assert promotion.is_active is False


def test_exhausted_promotion_is_deactivated(validate, make_promotion, prior_use):
    promotion = make_promotion(max_total_uses=1)
    prior_use(promotion)

    check = validate(promotion)

    assert check.error_message == INVALID_OR_INACTIVE
    assert promotion.is_active is False


def test_minimum_nights(validate, make_promotion):
    check = validate(make_promotion(minimum_nights=4), nights=3)
    assert check.error_message == minimum_nights_message(4)
    assert check.error_message == "This promotion requires a minimum stay of 4 night(s)."


def test_minimum_amount(validate, make_promotion):
    check = validate(make_promotion(minimum_amount=Decimal("300")), total_amount=Decimal("239.97"))
    assert check.error_message == minimum_amount_message(Decimal("300"))
    assert check.error_message == "This promotion requires a minimum amount of RM 300.00."


def test_phone_limit(validate, make_promotion, prior_use, encryption):
    promotion = make_promotion(limit_per_phone_number=True)
    prior_use(promotion, promotion_phone_number_hash=encryption.encrypt(CUSTOMER_PHONE))

    assert validate(promotion).error_message == USED_WITH_PHONE
    assert validate(promotion, phone_number="+60199999999").is_valid
    # Without a phone number the dimension is skipped
    assert validate(promotion, phone_number=None).is_valid


def test_card_limit(validate, make_promotion, prior_use, encryption):
    promotion = make_promotion(limit_per_payment_card=True)
    prior_use(promotion, promotion_card_identifier=card_identifier(CARD, encryption))

    assert validate(promotion, card_number="4111-1111-1111-1234").error_message == USED_WITH_CARD
    assert validate(promotion, card_number="4111 1111 1111 9999").is_valid
    assert validate(promotion, card_number=None).is_valid


def test_account_limit(validate, make_promotion, prior_use, seed):
    promotion = make_promotion(limit_per_user_account=True)
    prior_use(promotion, user=seed.customer)

    assert validate(promotion).error_message == USED_WITH_ACCOUNT
    assert validate(promotion, user_id=seed.other.id).is_valid
    assert validate(promotion, user_id=seed.staff.id).is_valid


@pytest.mark.parametrize(
    "evidence",
    [
        {"promotion_device_fingerprint": "fp-alice"},
        {"promotion_ip_address": "10.0.0.1"},
    ],
)
def test_device_limit_matches_fingerprint_or_ip(validate, make_promotion, prior_use, evidence):
    promotion = make_promotion(limit_per_device=True)
    prior_use(promotion, **evidence)

    assert validate(promotion).error_message == USED_FROM_DEVICE
    assert validate(promotion, device_fingerprint="fp-other", ip_address="10.9.9.9").is_valid


def test_device_limit_skipped_without_signals(validate, make_promotion, prior_use):
    promotion = make_promotion(limit_per_device=True)
    prior_use(promotion, promotion_device_fingerprint="fp-alice")

    assert validate(promotion, device_fingerprint=None, ip_address=None).is_valid


def test_limit_allows_configured_number_of_uses(validate, make_promotion, prior_use, seed):
    promotion = make_promotion(limit_per_user_account=True, max_uses_per_limit=2)
    prior_use(promotion, user=seed.customer)
    assert validate(promotion).is_valid

    prior_use(promotion, user=seed.customer)
    assert validate(promotion).error_message == USED_WITH_ACCOUNT


def test_unpaid_bookings_do_not_count(validate, make_promotion, make_booking, seed):
    promotion = make_promotion(limit_per_user_account=True)
    make_booking(user=seed.customer, promotion_id=promotion.id)

    assert validate(promotion).is_valid


def test_soft_deleted_uses_still_count(validate, make_promotion, prior_use, seed, db):
    promotion = make_promotion(limit_per_user_account=True)
    booking = prior_use(promotion, user=seed.customer)
    booking.soft_delete()
    db.commit()

    assert validate(promotion).error_message == USED_WITH_ACCOUNT


def test_phone_is_checked_before_card(validate, make_promotion, prior_use, encryption):
    promotion = make_promotion(limit_per_phone_number=True, limit_per_payment_card=True)
    prior_use(
        promotion,
        promotion_phone_number_hash=encryption.encrypt(CUSTOMER_PHONE),
        promotion_card_identifier=card_identifier(CARD, encryption),
    )

    assert validate(promotion, card_number=CARD).error_message == USED_WITH_PHONE


def test_record_usage_writes_evidence(promotions, make_promotion, make_booking, seed, encryption, clock, db):
    promotion = make_promotion()
    booking = make_booking()

    promotions.record_usage(
        promotion_id=promotion.id,
        booking_id=booking.id,
        user_id=seed.customer.id,
        phone_number=CUSTOMER_PHONE,
        card_number=CARD,
        device_fingerprint="fp-alice",
        ip_address="10.0.0.1",
    )
    db.commit()
    db.refresh(booking)

    assert booking.promotion_id == promotion.id
    assert booking.promotion_phone_number_hash == encryption.encrypt(CUSTOMER_PHONE)
    assert booking.promotion_card_identifier == card_identifier(CARD, encryption)
    assert booking.promotion_device_fingerprint == "fp-alice"
    assert booking.promotion_ip_address == "10.0.0.1"
    assert booking.promotion_used_at == clock()


def test_record_usage_deactivates_at_global_cap(promotions, make_promotion, make_booking, seed, db):
    promotion = make_promotion(max_total_uses=1)
    booking = make_booking()

    promotions.record_usage(promotion.id, booking.id, seed.customer.id, None, None, None, None)
    db.commit()
    db.refresh(promotion)

    assert promotion.is_active is False


def test_deactivate_invalid_promotions(promotions, make_promotion, prior_use, clock, db):
    expired = make_promotion(code="OLD", end_date=clock() - timedelta(days=1), start_date=clock() - timedelta(days=5))
    exhausted = make_promotion(code="FULL", max_total_uses=1)
    prior_use(exhausted)
    upcoming = make_promotion(code="SOON", start_date=clock() + timedelta(days=1))
    current = make_promotion(code="NOW")

    assert promotions.deactivate_invalid_promotions() == 2

    db.expire_all()
    assert expired.is_active is False
    assert exhausted.is_active is False
    assert upcoming.is_active is True
    assert current.is_active is True

    # Nothing left to do on a second pass
    assert promotions.deactivate_invalid_promotions() == 0


def test_list_active_promotions(promotions, make_promotion, clock):
    make_promotion(code="SOON", start_date=clock() + timedelta(days=1))
    make_promotion(code="OFF", is_active=False)
    make_promotion(code="GONE", start_date=clock() - timedelta(days=5), end_date=clock() - timedelta(days=1))
    make_promotion(code="NOW", discount_type=DiscountType.FIXED_AMOUNT, value=Decimal("20"))

    assert [p.code for p in promotions.list_active_promotions()] == ["NOW"]

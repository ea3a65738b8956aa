from datetime import datetime

import pytest

from budget_hotel.models import BookingStatus, SecurityLog
from budget_hotel.services import CheckInService, ScanAction, SecurityActions, SecurityLogger
from budget_hotel.services.base import ErrorCode
from budget_hotel.services.check_in_service import (
    ALREADY_CHECKED_OUT,
    CHECK_IN_SUCCESSFUL,
    CHECK_OUT_SUCCESSFUL,
    INVALID_QR_TOKEN,
    SAME_DAY_CHECK_OUT,
)
from budget_hotel.services.qr_service import EMPTY_QR_DATA, QR_NO_BOOKING_ID, build_payload


@pytest.fixture
def scanner(db, clock, session_factory):
    return CheckInService(db, clock, security_logger=SecurityLogger(session_factory, clock))


def test_token_scan_checks_in_confirmed_booking(scanner, make_booking, clock):
    booking = make_booking(status=BookingStatus.CONFIRMED)

    result = scanner.check_in_by_token(booking.qr_token)

    assert result.is_success
    assert result.message == CHECK_IN_SUCCESSFUL
    assert result.data.action == ScanAction.CHECKED_IN
    assert booking.status == BookingStatus.CHECKED_IN
    assert booking.check_in_time == clock()


def test_pending_booking_can_be_checked_in(scanner, make_booking):
    booking = make_booking(status=BookingStatus.PENDING)

    assert scanner.check_in_by_token(booking.qr_token).data.action == ScanAction.CHECKED_IN


def test_unknown_token(scanner, seed):
    result = scanner.check_in_by_token("00000000-0000-0000-0000-000000000000")

    assert result.error.code == ErrorCode.NOT_FOUND
    assert result.message == INVALID_QR_TOKEN


def test_check_out_refused_on_check_in_day(scanner, make_booking, clock):
    booking = make_booking(status=BookingStatus.CONFIRMED)
    scanner.check_in_by_token(booking.qr_token)
    clock.advance(hours=6)

    result = scanner.check_in_by_token(booking.qr_token)

    assert result.error.code == ErrorCode.INVALID_STATE
    assert result.message == SAME_DAY_CHECK_OUT
    assert booking.status == BookingStatus.CHECKED_IN


def test_check_out_on_a_later_day(scanner, make_booking, clock):
    booking = make_booking(status=BookingStatus.CONFIRMED)
    scanner.check_in_by_token(booking.qr_token)
    clock.advance(days=1)

    result = scanner.check_in_by_token(booking.qr_token)

    assert result.message == CHECK_OUT_SUCCESSFUL
    assert result.data.action == ScanAction.CHECKED_OUT
    assert booking.status == BookingStatus.CHECKED_OUT
    assert booking.check_out_time == clock()


def test_missing_check_in_time_is_treated_as_midnight_today(scanner, make_booking, clock, db):
    booking = make_booking(status=BookingStatus.CHECKED_IN)

    result = scanner.check_in_by_token(booking.qr_token)

    assert result.message == SAME_DAY_CHECK_OUT
    db.expire_all()
    assert booking.check_in_time == datetime(2026, 3, 10, 0, 0)


def test_checked_out_booking_scans_as_benign(scanner, make_booking):
    booking = make_booking(status=BookingStatus.CHECKED_OUT)

    result = scanner.check_in_by_token(booking.qr_token)

    assert result.is_success
    assert result.data.action == ScanAction.ALREADY_CHECKED_OUT
    assert result.message == ALREADY_CHECKED_OUT


@pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.NO_SHOW])
def test_terminal_bookings_are_refused(scanner, make_booking, status):
    booking = make_booking(status=status)

    result = scanner.check_in_by_token(booking.qr_token)

    assert result.error.code == ErrorCode.INVALID_STATE
    assert result.message == f"Booking status is {status.value}. Cannot process."


def test_staff_scan_of_printed_payload(scanner, make_booking, staff_actor, db):
    booking = make_booking(status=BookingStatus.CONFIRMED)

    result = scanner.scan_payload(build_payload(booking), staff_actor.user_id, staff_actor.ip_address)

    assert result.message == CHECK_IN_SUCCESSFUL
    entry = db.query(SecurityLog).filter(SecurityLog.action == SecurityActions.CHECK_IN).one()
    assert entry.user_id == staff_actor.user_id
    assert entry.ip_address == "10.0.0.99"


def test_staff_scan_of_bare_booking_id(scanner, make_booking):
    booking = make_booking(status=BookingStatus.CONFIRMED)

    assert scanner.scan_payload(str(booking.id)).data.booking.id == booking.id


def test_staff_scan_of_unknown_booking(scanner, seed):
    result = scanner.scan_payload("BookingID:999|Room:101")

    assert result.error.code == ErrorCode.NOT_FOUND
    assert result.message == "Booking #999 not found."


@pytest.mark.parametrize("data", [None, ""])
def test_staff_scan_without_data(scanner, data):
    result = scanner.scan_payload(data)

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.message == EMPTY_QR_DATA


@pytest.mark.parametrize("data", ["99999999999999999999", "BookingID:99999999999999999999|User:x"])
def test_staff_scan_of_oversized_booking_id(scanner, seed, data):
    result = scanner.scan_payload(data)

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.message == QR_NO_BOOKING_ID

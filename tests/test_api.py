from datetime import timedelta
from decimal import Decimal

import pytest

from budget_hotel.models import Booking, BookingStatus, UserRole

API = "/api/v1"

CARD = {
    "payment_method": "CreditCard",
    "card_number": "4111 1111 1111 1234",
    "cardholder_name": "Alice Tan",
    "expiry_month": 12,
    "expiry_year": 2030,
    "cvv": "123",
}


@pytest.fixture
def alice(auth_headers, seed):
    return auth_headers(seed.customer)


@pytest.fixture
def front_desk(auth_headers, seed):
    return auth_headers(seed.staff, UserRole.STAFF)


@pytest.fixture
def new_booking(client, alice, seed, today):
    def _create(nights=3, **extra):
        body = {
            "room_type_id": seed.standard.id,
            "check_in": str(today + timedelta(days=1)),
            "check_out": str(today + timedelta(days=1 + nights)),
            **extra,
        }
        response = client.post(f"{API}/bookings", json=body, headers=alice)
        assert response.status_code == 201, response.text
        return response.json()["booking"]

    return _create


def test_health(client):
    response = client.get(f"{API}/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_identity_headers_are_required(client):
    response = client.get(f"{API}/bookings")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"


def test_unknown_role_is_rejected(client, seed):
    response = client.get(
        f"{API}/bookings", headers={"X-User-Id": str(seed.customer.id), "X-User-Role": "owner"}
    )
    assert response.status_code == 401


def test_booking_flow(client, alice, new_booking, make_promotion, db):
    promotion = make_promotion()

    booking = new_booking(promotion_id=promotion.id)
    assert booking["status"] == "Pending"
    assert booking["room_number"] == "101"
    assert Decimal(booking["total_price"]) == Decimal("215.97")

    response = client.post(f"{API}/bookings/{booking['id']}/payment", json=CARD, headers=alice)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["message"] == "Payment successful! Your booking is confirmed."
    assert body["booking"]["status"] == "Confirmed"
    assert body["booking"]["transaction_id"].startswith("CC-")

    stored = db.get(Booking, booking["id"])
    db.refresh(stored)
    assert stored.promotion_used_at is not None
    assert stored.promotion_ip_address == "testclient"

    again = client.post(f"{API}/bookings/{booking['id']}/payment", json=CARD, headers=alice)
    assert again.status_code == 409
    assert again.json()["error"]["message"] == "This booking has already been processed."


def test_payment_needs_details(client, alice, new_booking):
    booking = new_booking()

    response = client.post(
        f"{API}/bookings/{booking['id']}/payment", json={"payment_method": "PayPal"}, headers=alice
    )

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Please enter your PayPal email."
    assert response.json()["error"]["details"]["field"] == "payment_method"


def test_staff_cannot_book(client, front_desk, seed, today):
    body = {
        "room_type_id": seed.standard.id,
        "check_in": str(today + timedelta(days=1)),
        "check_out": str(today + timedelta(days=2)),
    }
    response = client.post(f"{API}/bookings", json=body, headers=front_desk)

    assert response.status_code == 403


def test_rejected_promotion_is_a_validation_error(client, alice, seed, today, make_promotion):
    promotion = make_promotion(minimum_nights=5)
    body = {
        "room_type_id": seed.standard.id,
        "check_in": str(today + timedelta(days=1)),
        "check_out": str(today + timedelta(days=2)),
        "promotion_id": promotion.id,
    }

    response = client.post(f"{API}/bookings", json=body, headers=alice)

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "This promotion requires a minimum stay of 5 night(s)."


def test_cancel(client, alice, new_booking):
    booking = new_booking()

    response = client.post(f"{API}/bookings/{booking['id']}/cancel", headers=alice)

    assert response.status_code == 200
    assert response.json()["booking"]["status"] == "Cancelled"
    assert Decimal(response.json()["booking"]["refund_amount"]) == Decimal("0")


def test_other_customers_bookings_are_invisible(client, auth_headers, seed, new_booking):
    booking = new_booking()
    bob = auth_headers(seed.other)

    assert client.get(f"{API}/bookings/{booking['id']}", headers=bob).status_code == 404
    assert client.post(f"{API}/bookings/{booking['id']}/cancel", headers=bob).status_code == 404
    assert client.get(f"{API}/bookings", headers=bob).json() == []


def test_list_and_detail(client, alice, new_booking, seed):
    room_booking = new_booking()
    package_booking = new_booking(nights=2, package_id=seed.package.id)

    listed = client.get(f"{API}/bookings", headers=alice).json()
    assert {b["id"] for b in listed} == {room_booking["id"], package_booking["id"]}

    detail = client.get(f"{API}/bookings/{package_booking['id']}", headers=alice).json()
    assert detail["origin_kind"] == "Package"
    assert detail["package_details"]["name"] == "Weekend Getaway"
    lines = {(line["kind"], line["name"], line["quantity"]) for line in detail["package_details"]["lines"]}
    assert lines == {("room", "Deluxe", 1), ("service", "Breakfast", 2)}
    targets = {line["kind"]: line["target_id"] for line in detail["package_details"]["lines"]}
    assert targets == {"room": seed.deluxe.id, "service": seed.breakfast.id}

    assert client.get(f"{API}/bookings/{room_booking['id']}", headers=alice).json()["package_details"] is None


def test_confirmation_and_qr_code(client, alice, new_booking):
    booking = new_booking()

    confirmation = client.get(f"{API}/bookings/{booking['id']}/confirmation", headers=alice)
    assert confirmation.json()["qr_token"] == booking["qr_token"]

    image = client.get(f"{API}/bookings/{booking['id']}/qrcode", headers=alice)
    assert image.status_code == 200
    assert image.headers["content-type"] == "image/png"
    assert image.content.startswith(b"\x89PNG")


def test_token_check_in_and_check_out(client, make_booking, clock):
    booking = make_booking(status=BookingStatus.CONFIRMED)

    first = client.get(f"{API}/check-in/{booking.qr_token}")
    assert first.json()["action"] == "checked_in"
    assert first.json()["status"] == "CheckedIn"

    same_day = client.get(f"{API}/check-in/{booking.qr_token}")
    assert same_day.status_code == 409

    clock.advance(days=1)
    second = client.get(f"{API}/check-in/{booking.qr_token}")
    assert second.json()["message"] == "Check-Out Successful!"


def test_unknown_token(client, seed):
    response = client.get(f"{API}/check-in/not-a-token")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Invalid or expired QR code."


def test_admin_scan_requires_staff(client, alice, front_desk, make_booking):
    booking = make_booking(status=BookingStatus.CONFIRMED)
    body = {"scanned_data": f"BookingID:{booking.id}|Room:101"}

    assert client.post(f"{API}/admin/bookings/qr-check-in", json=body, headers=alice).status_code == 403

    response = client.post(f"{API}/admin/bookings/qr-check-in", json=body, headers=front_desk)
    assert response.status_code == 200
    assert response.json()["booking_id"] == booking.id


def test_admin_scan_with_empty_data(client, front_desk):
    response = client.post(f"{API}/admin/bookings/qr-check-in", json={"scanned_data": ""}, headers=front_desk)

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Empty QR data."


def test_admin_sweep(client, front_desk, alice, make_booking, today):
    missed = make_booking(status=BookingStatus.CONFIRMED, check_in=today - timedelta(days=2))

    assert client.post(f"{API}/admin/maintenance/sweep", headers=alice).status_code == 403

    response = client.post(f"{API}/admin/maintenance/sweep", headers=front_desk)
    assert response.status_code == 200
    assert response.json()["no_show"] == [missed.id]
    assert response.json()["bookings_updated"] == 1


def test_promotions_listing(client, alice, make_promotion, clock):
    make_promotion(code="SAVE10")
    make_promotion(code="LATER", start_date=clock() + timedelta(days=3))

    response = client.get(f"{API}/bookings/promotions", headers=alice)

    assert [p["code"] for p in response.json()] == ["SAVE10"]


def test_availability(client, alice, seed, today):
    params = {
        "room_type_id": seed.standard.id,
        "check_in": str(today + timedelta(days=1)),
        "check_out": str(today + timedelta(days=3)),
    }

    response = client.get(f"{API}/bookings/availability", params=params, headers=alice)

    assert response.status_code == 200
    assert response.json()["available_rooms"] == 2
    assert response.json()["nights"] == 2


def test_availability_rejects_past_dates(client, alice, seed, today):
    params = {
        "room_type_id": seed.standard.id,
        "check_in": str(today - timedelta(days=1)),
        "check_out": str(today + timedelta(days=1)),
    }

    response = client.get(f"{API}/bookings/availability", params=params, headers=alice)

    assert response.status_code == 422


def test_startup_creates_missing_tables(settings, clock):
    from fastapi.testclient import TestClient
    from sqlalchemy import create_engine, inspect
    from sqlalchemy.pool import StaticPool

    from budget_hotel.main import create_app

    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    app = create_app(settings=settings, engine=engine, clock=clock)

    with TestClient(app) as client:
        assert client.get(f"{API}/health").status_code == 200
        assert app.state.scheduler.is_running is False

    assert {"bookings", "promotions", "rooms"} <= set(inspect(engine).get_table_names())
    engine.dispose()


def test_admin_scan_with_oversized_booking_id(client, front_desk):
    body = {"scanned_data": "99999999999999999999"}

    response = client.post(f"{API}/admin/bookings/qr-check-in", json=body, headers=front_desk)

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Could not extract a valid Booking ID from the QR."


@pytest.mark.parametrize("booking_id", ["0", "2147483648", "99999999999999999999"])
def test_booking_ids_outside_the_key_range_are_rejected(client, alice, booking_id):
    assert client.get(f"{API}/bookings/{booking_id}", headers=alice).status_code == 422
    assert client.post(f"{API}/bookings/{booking_id}/cancel", headers=alice).status_code == 422


def test_oversized_ids_in_headers_and_body(client, alice, seed, today):
    huge = "99999999999999999999"
    assert client.get(f"{API}/bookings", headers={"X-User-Id": huge}).status_code == 401

    body = {
        "room_type_id": seed.standard.id,
        "check_in": str(today + timedelta(days=1)),
        "check_out": str(today + timedelta(days=2)),
        "promotion_id": int(huge),
    }
    assert client.post(f"{API}/bookings", json=body, headers=alice).status_code == 422

"""
QR payload encoding for booking passes.

Payload format::

    BookingID:<id>|User:<email>|Room:<number>|CheckIn:<yyyy-mm-dd>|CheckOut:<yyyy-mm-dd>

Scanners also accept a bare booking id.
"""

from io import BytesIO

import qrcode

from budget_hotel.models import MAX_ID, Booking

BOOKING_ID_PREFIX = "BookingID:"

EMPTY_QR_DATA = "Empty QR data."
QR_FORMAT_ERROR = "Error parsing QR format."
QR_NO_BOOKING_ID = "Could not extract a valid Booking ID from the QR."


class QrPayloadError(ValueError):
    """Scanned data that does not identify a booking."""


def build_payload(booking: Booking) -> str:
    return (
        f"{BOOKING_ID_PREFIX}{booking.id}"
        f"|User:{booking.user.email}"
        f"|Room:{booking.room.room_number}"
        f"|CheckIn:{booking.check_in_date:%Y-%m-%d}"
        f"|CheckOut:{booking.check_out_date:%Y-%m-%d}"
    )


def _to_int(text: str) -> int:
    """Parse a signed 32-bit integer; anything else reads as 0."""
    try:
        value = int(text.strip())
    except ValueError:
        return 0
    if not -MAX_ID - 1 <= value <= MAX_ID:
        return 0
    return value


def parse_booking_id(scanned_data: str) -> int:
    """
    Extract the booking id from scanned QR text.

    Raises:
        QrPayloadError: Empty data, a malformed ``BookingID:`` segment, or no usable id
    """
    if not scanned_data:
        raise QrPayloadError(EMPTY_QR_DATA)

    if BOOKING_ID_PREFIX in scanned_data:
        first_segment = scanned_data.split("|")[0]
        pieces = first_segment.split(":")
        if len(pieces) < 2:
            raise QrPayloadError(QR_FORMAT_ERROR)
        booking_id = _to_int(pieces[1])
    else:
        booking_id = _to_int(scanned_data)

    if booking_id == 0:
        raise QrPayloadError(QR_NO_BOOKING_ID)
    return booking_id


def render_png(payload: str) -> bytes:
    """Render the payload as a PNG image with quartile error correction."""
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_Q, box_size=10, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image()
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()

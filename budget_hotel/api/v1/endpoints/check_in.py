"""
Check-in endpoints driven by QR codes.

The token link is printed on the booking pass and opened by the front desk
device; the admin scan endpoint accepts whatever text the scanner read.
"""

from fastapi import APIRouter, Depends, Request

from budget_hotel.api.deps import (
    get_check_in_service,
    get_client_ip,
    get_staff_actor,
    unwrap_result,
)
from budget_hotel.schemas import Actor, QrScanRequest, ScanResponse
from budget_hotel.services import CheckInService, ScanOutcome

router = APIRouter(tags=["Check-in"])


def _scan_response(outcome: ScanOutcome) -> ScanResponse:
    booking = outcome.booking
    return ScanResponse(
        message=outcome.message,
        action=outcome.action.value,
        booking_id=booking.id,
        status=booking.status,
        check_in_time=booking.check_in_time,
        check_out_time=booking.check_out_time,
    )


@router.get("/check-in/{token}", response_model=ScanResponse)
def check_in_by_token(
    token: str,
    check_in: CheckInService = Depends(get_check_in_service),
):
    return _scan_response(unwrap_result(check_in.check_in_by_token(token)))


@router.post("/admin/bookings/qr-check-in", response_model=ScanResponse)
def scan_qr_payload(
    payload: QrScanRequest,
    request: Request,
    staff: Actor = Depends(get_staff_actor),
    check_in: CheckInService = Depends(get_check_in_service),
):
    result = check_in.scan_payload(payload.scanned_data, staff.user_id, get_client_ip(request))
    return _scan_response(unwrap_result(result))

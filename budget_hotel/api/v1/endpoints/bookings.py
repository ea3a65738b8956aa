"""
Customer booking endpoints.
"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Path, Query, Response, status

from budget_hotel.api.deps import (
    get_availability_service,
    get_booking_service,
    get_current_actor,
    get_promotion_service,
    unwrap_result,
)
from budget_hotel.models import MAX_ID, PackageItemKind, RoomItem
from budget_hotel.schemas import (
    Actor,
    AvailabilityResponse,
    BookingActionResponse,
    BookingCreate,
    BookingDetailResponse,
    BookingResponse,
    BookingSummary,
    PackageInfo,
    PackageLineResponse,
    PaymentRequest,
    PromotionResponse,
)
from budget_hotel.services import (
    AvailabilityService,
    BookingService,
    BookingView,
    PromotionValidationService,
)
from budget_hotel.services.qr_service import render_png

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _summary(view: BookingView) -> BookingSummary:
    summary = BookingSummary.from_booking(view.booking)
    summary.can_review = view.can_review
    summary.has_review = view.has_review
    return summary


def _detail(view: BookingView) -> BookingDetailResponse:
    detail = BookingDetailResponse.from_booking(view.booking)
    detail.can_review = view.can_review
    detail.has_review = view.has_review
    if view.package is not None:
        lines = []
        for item in view.package.items:
            line = item.as_line()
            if isinstance(line, RoomItem):
                kind, target_id = PackageItemKind.ROOM, line.room_type_id
                name = item.room_type.name if item.room_type else None
            else:
                kind, target_id = PackageItemKind.SERVICE, line.service_id
                name = item.service.name if item.service else None
            lines.append(
                PackageLineResponse(kind=kind.value, target_id=target_id, name=name, quantity=line.quantity)
            )
        detail.package_details = PackageInfo(
            id=view.package.id,
            name=view.package.name,
            total_price=view.package.total_price,
            lines=lines,
        )
    return detail


# --- Catalogue -----------------------------------------------------------------

@router.get("/promotions", response_model=List[PromotionResponse])
def list_promotions(
    actor: Actor = Depends(get_current_actor),
    promotions: PromotionValidationService = Depends(get_promotion_service),
):
    """Promotions a customer can choose right now."""
    return [PromotionResponse.model_validate(p) for p in promotions.list_active_promotions()]


@router.get("/availability", response_model=AvailabilityResponse)
def check_availability(
    room_type_id: int = Query(..., gt=0, le=MAX_ID),
    check_in: date = Query(...),
    check_out: date = Query(...),
    actor: Actor = Depends(get_current_actor),
    availability: AvailabilityService = Depends(get_availability_service),
):
    summary = unwrap_result(availability.check_availability(room_type_id, check_in, check_out))
    return AvailabilityResponse(
        room_type_id=summary.room_type_id,
        check_in=summary.check_in,
        check_out=summary.check_out,
        nights=summary.nights,
        available_rooms=summary.available_rooms,
    )


# --- Lifecycle -----------------------------------------------------------------

@router.post("", response_model=BookingActionResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    actor: Actor = Depends(get_current_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    result = bookings.create_booking(actor, payload)
    booking = unwrap_result(result)
    return BookingActionResponse(message=result.message, booking=BookingResponse.from_booking(booking))


@router.get("", response_model=List[BookingSummary])
def list_my_bookings(
    actor: Actor = Depends(get_current_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    return [_summary(view) for view in unwrap_result(bookings.list_user_bookings(actor))]


@router.get("/{booking_id}", response_model=BookingDetailResponse)
def get_booking(
    booking_id: int = Path(..., gt=0, le=MAX_ID),
    actor: Actor = Depends(get_current_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    return _detail(unwrap_result(bookings.get_booking_for_user(actor, booking_id)))


@router.get("/{booking_id}/confirmation", response_model=BookingResponse)
def get_confirmation(
    booking_id: int = Path(..., gt=0, le=MAX_ID),
    actor: Actor = Depends(get_current_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_booking(unwrap_result(bookings.get_confirmation(actor, booking_id)))


@router.post("/{booking_id}/payment", response_model=BookingActionResponse)
def process_payment(
    payment: PaymentRequest,
    booking_id: int = Path(..., gt=0, le=MAX_ID),
    actor: Actor = Depends(get_current_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    result = bookings.process_payment(actor, booking_id, payment)
    booking = unwrap_result(result)
    return BookingActionResponse(message=result.message, booking=BookingResponse.from_booking(booking))


@router.post("/{booking_id}/cancel", response_model=BookingActionResponse)
def cancel_booking(
    booking_id: int = Path(..., gt=0, le=MAX_ID),
    actor: Actor = Depends(get_current_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    result = bookings.cancel_booking(actor, booking_id)
    booking = unwrap_result(result)
    return BookingActionResponse(message=result.message, booking=BookingResponse.from_booking(booking))


@router.get(
    "/{booking_id}/qrcode",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_qr_code(
    booking_id: int = Path(..., gt=0, le=MAX_ID),
    actor: Actor = Depends(get_current_actor),
    bookings: BookingService = Depends(get_booking_service),
):
    payload = unwrap_result(bookings.get_qr_payload(actor, booking_id))
    return Response(content=render_png(payload), media_type="image/png")

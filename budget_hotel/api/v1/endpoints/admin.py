"""
Staff maintenance endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from budget_hotel.api.deps import get_clock, get_db, get_encryption, get_settings, get_staff_actor
from budget_hotel.core.logging import get_logger
from budget_hotel.schemas import Actor, SweepResponse
from budget_hotel.services import run_sweep

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/maintenance", tags=["Admin"])


@router.post("/sweep", response_model=SweepResponse)
def run_maintenance_sweep(
    request: Request,
    staff: Actor = Depends(get_staff_actor),
    db: Session = Depends(get_db),
):
    """Bring booking statuses and promotion flags up to date now."""
    settings = get_settings(request)
    report = run_sweep(
        db,
        get_encryption(request),
        get_clock(request),
        settings.NO_SHOW_GRACE_DAYS,
        settings.CURRENCY,
    )
    logger.info(
        f"Manual sweep by user {staff.user_id}: {report.bookings_updated} booking(s) updated",
        extra={"promotions_deactivated": report.promotions_deactivated},
    )
    return SweepResponse(
        bookings_updated=report.bookings_updated,
        checked_out=report.checked_out,
        no_show=report.no_show,
        promotions_deactivated=report.promotions_deactivated,
    )

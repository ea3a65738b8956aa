from budget_hotel.services.availability_service import AvailabilityService, AvailabilitySummary
from budget_hotel.services.booking_service import BookingService, BookingView
from budget_hotel.services.booking_status_service import BookingStatusService, StatusSweepResult
from budget_hotel.services.check_in_service import CheckInService, ScanAction, ScanOutcome
from budget_hotel.services.notification_service import NotificationService
from budget_hotel.services.promotion_validation_service import PromotionCheck, PromotionValidationService
from budget_hotel.services.security_logger import SecurityActions, SecurityLogger
from budget_hotel.services.sweep_scheduler import SweepReport, SweepScheduler, run_sweep

__all__ = [
    "AvailabilityService",
    "AvailabilitySummary",
    "BookingService",
    "BookingView",
    "BookingStatusService",
    "StatusSweepResult",
    "CheckInService",
    "ScanAction",
    "ScanOutcome",
    "NotificationService",
    "PromotionCheck",
    "PromotionValidationService",
    "SecurityActions",
    "SecurityLogger",
    "SweepReport",
    "SweepScheduler",
    "run_sweep",
]

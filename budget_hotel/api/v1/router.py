"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the reservation core
"""

from fastapi import APIRouter

from budget_hotel.api.v1.endpoints import admin, bookings, check_in, health

# Create main API v1 router with proper configuration
router = APIRouter(
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(health.router)
router.include_router(bookings.router)
router.include_router(check_in.router)
router.include_router(admin.router)

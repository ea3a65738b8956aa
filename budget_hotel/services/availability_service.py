"""
Availability resolution for a room type over a date range.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_hotel.models import Room
from budget_hotel.repositories import RoomRepository, RoomTypeRepository
from budget_hotel.services.base import BaseService, Clock, ServiceResult

NO_ROOMS_AVAILABLE = "No rooms available for the selected dates."
CHECK_OUT_BEFORE_CHECK_IN = "Check-out date must be after check-in date."
CHECK_IN_IN_PAST = "Check-in date cannot be in the past."


def validate_stay_dates(check_in: date, check_out: date, today: date) -> Optional[str]:
    """Return the user-facing reason the range is unusable, or None."""
    if check_in >= check_out:
        return CHECK_OUT_BEFORE_CHECK_IN
    if check_in < today:
        return CHECK_IN_IN_PAST
    return None


@dataclass(frozen=True)
class AvailabilitySummary:
    room_type_id: int
    check_in: date
    check_out: date
    nights: int
    available_rooms: int


class AvailabilityService(BaseService):
    """Finds rooms of a type with no overlapping non-terminal booking."""

    def __init__(self, db_session: Session, clock: Optional[Clock] = None):
        super().__init__(db_session, clock)
        self.rooms = RoomRepository(db_session)
        self.room_types = RoomTypeRepository(db_session)

    def find_available_room(
        self,
        room_type_id: int,
        check_in: date,
        check_out: date,
        lock: bool = False,
    ) -> Optional[Room]:
        """
        One available room of the type for [check_in, check_out), or None.

        Rooms are tried in ascending room number order so the same request
        always resolves to the same room.
        """
        room = self.rooms.find_available_room(room_type_id, check_in, check_out, lock=lock)
        self._logger.debug(
            f"Availability lookup for room type {room_type_id}: "
            f"{'room ' + room.room_number if room else 'none'}",
            extra={"room_type_id": room_type_id, "check_in": str(check_in), "check_out": str(check_out)},
        )
        return room

    def check_availability(
        self,
        room_type_id: int,
        check_in: date,
        check_out: date,
    ) -> ServiceResult[AvailabilitySummary]:
        reason = validate_stay_dates(check_in, check_out, self.today())
        if reason:
            return ServiceResult.validation_failure(reason, field="check_in")

        try:
            if self.room_types.find_by_id(room_type_id) is None:
                return ServiceResult.not_found("Room type", room_type_id)
            count = self.rooms.count_available_rooms(room_type_id, check_in, check_out)
        except SQLAlchemyError as e:
            return self._handle_exception(
                e, "check availability", "Unable to check availability. Please try again.", room_type_id
            )

        summary = AvailabilitySummary(
            room_type_id=room_type_id,
            check_in=check_in,
            check_out=check_out,
            nights=(check_out - check_in).days,
            available_rooms=count,
        )
        if count == 0:
            return ServiceResult.validation_failure(NO_ROOMS_AVAILABLE, details={"room_type_id": room_type_id})
        return ServiceResult.success(summary)

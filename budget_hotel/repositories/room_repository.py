"""
Room and room type queries, including date-overlap availability.
"""

from datetime import date
from typing import Optional

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import Query, Session

from budget_hotel.models import Booking, BookingStatus, Room, RoomStatus, RoomType
from budget_hotel.repositories.base import BaseRepository


def overlapping_bookings_clause(check_in: date, check_out: date):
    """
    Three-case overlap between an existing booking and [check_in, check_out):
    existing start inside the range, existing end inside the range, or the
    existing stay inside the requested one. An existing stay that fully
    covers the request is caught by the first case.
    """
    return or_(
        and_(Booking.check_in_date <= check_in, Booking.check_out_date > check_in),
        and_(Booking.check_in_date < check_out, Booking.check_out_date >= check_out),
        and_(Booking.check_in_date >= check_in, Booking.check_out_date <= check_out),
    )


class RoomTypeRepository(BaseRepository[RoomType]):
    def __init__(self, db: Session):
        super().__init__(RoomType, db)


class RoomRepository(BaseRepository[Room]):
    def __init__(self, db: Session):
        super().__init__(Room, db)

    def _available_query(self, room_type_id: int, check_in: date, check_out: date) -> Query:
        conflicting = exists().where(
            Booking.room_id == Room.id,
            Booking.is_deleted.is_(False),
            Booking.status.notin_(BookingStatus.terminal()),
            overlapping_bookings_clause(check_in, check_out),
        )
        return (
            self.query()
            .filter(
                Room.room_type_id == room_type_id,
                Room.status == RoomStatus.AVAILABLE,
                ~conflicting,
            )
            .order_by(Room.room_number, Room.id)
        )

    def find_available_room(
        self,
        room_type_id: int,
        check_in: date,
        check_out: date,
        lock: bool = False,
    ) -> Optional[Room]:
        """
        First free room of the type for the range, lowest room number first.

        With ``lock`` the row is selected FOR UPDATE (ignored by SQLite) and
        the overlap is checked again once the lock is held. The locking
        statement kept the snapshot it started with, so a booking committed
        by the previous lock holder is only visible to the second check.
        """
        query = self._available_query(room_type_id, check_in, check_out)
        if not lock:
            return query.first()

        skipped = []
        while True:
            candidates = query.filter(Room.id.notin_(skipped)) if skipped else query
            room = candidates.with_for_update(of=Room).first()
            if room is None or not self.has_overlapping_booking(room.id, check_in, check_out):
                return room
            skipped.append(room.id)

    def has_overlapping_booking(self, room_id: int, check_in: date, check_out: date) -> bool:
        return self.db.query(
            exists().where(
                Booking.room_id == room_id,
                Booking.is_deleted.is_(False),
                Booking.status.notin_(BookingStatus.terminal()),
                overlapping_bookings_clause(check_in, check_out),
            )
        ).scalar()

    def count_available_rooms(self, room_type_id: int, check_in: date, check_out: date) -> int:
        return self._available_query(room_type_id, check_in, check_out).order_by(None).count()

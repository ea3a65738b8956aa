from budget_hotel.repositories.base import BaseRepository
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.repositories.package_repository import PackageRepository
from budget_hotel.repositories.promotion_repository import PromotionRepository
from budget_hotel.repositories.room_repository import RoomRepository, RoomTypeRepository
from budget_hotel.repositories.user_repository import SecurityLogRepository, UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "PackageRepository",
    "PromotionRepository",
    "RoomRepository",
    "RoomTypeRepository",
    "SecurityLogRepository",
    "UserRepository",
]

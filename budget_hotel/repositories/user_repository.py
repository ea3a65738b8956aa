from sqlalchemy.orm import Session

from budget_hotel.models import SecurityLog, User
from budget_hotel.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(User, db)


class SecurityLogRepository(BaseRepository[SecurityLog]):
    def __init__(self, db: Session):
        super().__init__(SecurityLog, db)

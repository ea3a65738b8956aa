from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from budget_hotel.models import Promotion
from budget_hotel.repositories.base import BaseRepository


class PromotionRepository(BaseRepository[Promotion]):
    def __init__(self, db: Session):
        super().__init__(Promotion, db)

    def find_active(self) -> List[Promotion]:
        return self.query().filter(Promotion.is_active.is_(True)).order_by(Promotion.id).all()

    def find_currently_valid(self, now: datetime) -> List[Promotion]:
        """Active promotions whose window contains ``now``."""
        return (
            self.query()
            .filter(
                Promotion.is_active.is_(True),
                Promotion.start_date <= now,
                Promotion.end_date >= now,
            )
            .order_by(Promotion.end_date, Promotion.id)
            .all()
        )

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from budget_hotel.models import Package
from budget_hotel.repositories.base import BaseRepository


class PackageRepository(BaseRepository[Package]):
    def __init__(self, db: Session):
        super().__init__(Package, db)

    def find_active_by_id(self, package_id: int) -> Optional[Package]:
        return (
            self.query()
            .options(selectinload(Package.items))
            .filter(Package.id == package_id, Package.is_active.is_(True))
            .first()
        )

"""
Base repository with the shared read/write helpers used by domain repositories.

Repositories never commit. The calling service owns the unit of work and
commits or rolls back through ``BaseService.transaction()``.
"""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from budget_hotel.core.logging import get_logger
from budget_hotel.db.base import Base
from budget_hotel.models.base import SoftDeleteMixin

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository over one model.

    Soft-deleted rows are filtered out of every query unless
    ``include_deleted`` is passed.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db
        self._is_soft_delete = issubclass(model, SoftDeleteMixin)

    def query(self, include_deleted: bool = False) -> Query:
        query = self.db.query(self.model)
        if self._is_soft_delete and not include_deleted:
            query = query.filter(self.model.is_deleted.is_(False))
        return query

    # ==================== Write Operations ====================

    def add(self, entity: ModelType) -> ModelType:
        """Add entity to the session and flush so generated ids are available."""
        self.db.add(entity)
        self.db.flush()
        logger.debug(f"Added {self.model.__name__} with id: {entity.id}")
        return entity

    # ==================== Read Operations ====================

    def find_by_id(self, id: int, include_deleted: bool = False) -> Optional[ModelType]:
        return self.query(include_deleted).filter(self.model.id == id).first()

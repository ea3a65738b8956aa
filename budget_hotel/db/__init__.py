from budget_hotel.db.base import Base
from budget_hotel.db.session import create_db_engine, create_session_factory

__all__ = ["Base", "create_db_engine", "create_session_factory"]

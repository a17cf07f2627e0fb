"""SQLAlchemy repository implementations."""

from stocksim.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_session,
    get_db,
    init_db,
    init_db_with_path,
    reset_database,
    Base,
)
from stocksim.repositories.sqlalchemy.key_value_repo import SqlAlchemyKeyValueStore

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_session",
    "get_db",
    "init_db",
    "init_db_with_path",
    "reset_database",
    "Base",
    "SqlAlchemyKeyValueStore",
]

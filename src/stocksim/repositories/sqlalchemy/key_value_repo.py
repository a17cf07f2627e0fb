"""SQLAlchemy implementation of KeyValueStore."""

import threading
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stocksim.core.exceptions import PersistenceError
from stocksim.repositories.sqlalchemy.orm_models import KeyValueORM


class SqlAlchemyKeyValueStore:
    """SQLAlchemy-backed key-value store."""

    def __init__(self, db: Session):
        self._db = db
        # A Session is not thread-safe; serialise access to it.
        self._lock = threading.Lock()

    def get_string(self, key: str) -> Optional[str]:
        orm = self._get(key)
        return orm.string_value if orm else None

    def set_string(self, key: str, value: str) -> None:
        self._upsert(key, string_value=value, double_value=None)

    def get_double(self, key: str) -> Optional[float]:
        orm = self._get(key)
        if orm is None or orm.double_value is None:
            return None
        return float(orm.double_value)

    def set_double(self, key: str, value: float) -> None:
        self._upsert(key, string_value=None, double_value=float(value))

    def remove(self, key: str) -> None:
        with self._lock:
            try:
                self._db.query(KeyValueORM).filter(KeyValueORM.key == key).delete()
                self._db.commit()
            except SQLAlchemyError as exc:
                self._db.rollback()
                raise PersistenceError(f"Failed to remove '{key}': {exc}") from exc

    def _get(self, key: str) -> Optional[KeyValueORM]:
        with self._lock:
            try:
                return self._db.query(KeyValueORM).filter(KeyValueORM.key == key).first()
            except SQLAlchemyError as exc:
                self._db.rollback()
                raise PersistenceError(f"Failed to read '{key}': {exc}") from exc

    def _upsert(
        self,
        key: str,
        string_value: Optional[str],
        double_value: Optional[float],
    ) -> None:
        with self._lock:
            try:
                orm = self._db.query(KeyValueORM).filter(KeyValueORM.key == key).first()
                if orm:
                    orm.string_value = string_value
                    orm.double_value = double_value
                else:
                    orm = KeyValueORM(
                        key=key,
                        string_value=string_value,
                        double_value=double_value,
                    )
                    self._db.add(orm)
                self._db.commit()
            except SQLAlchemyError as exc:
                self._db.rollback()
                raise PersistenceError(f"Failed to write '{key}': {exc}") from exc

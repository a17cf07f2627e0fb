"""SQLAlchemy ORM model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Float, DateTime

from stocksim.repositories.sqlalchemy.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueORM(Base):
    """One namespaced preference entry; either the string or the double column is set."""

    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    string_value = Column(Text, nullable=True)
    double_value = Column(Float, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=_utc_now, onupdate=_utc_now)

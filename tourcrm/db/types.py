"""Custom SQLAlchemy types used by the persistence layer."""
from __future__ import annotations

from typing import Any

from sqlalchemy import Numeric
from sqlalchemy.dialects import postgresql
from sqlalchemy.types import JSON, TypeDecorator


class JSONDocument(TypeDecorator[Any]):
    """Store JSON documents as JSONB on PostgreSQL.

    Falls back to the generic JSON type on other dialects (e.g. SQLite
    during unit tests).
    """

    cache_ok = True
    impl = JSON

    def load_dialect_impl(self, dialect):  # type: ignore[override]
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.JSONB())
        return dialect.type_descriptor(JSON())


# Monetary amounts: two decimal places, large enough for group tour totals.
Money = Numeric(12, 2)


__all__ = ["JSONDocument", "Money"]

"""Column types shared by the models and the Alembic revision."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.dialects import postgresql
from sqlalchemy.types import CHAR, TypeDecorator


class GUID(TypeDecorator):
    """Record ids as canonical lowercase UUID strings.

    PostgreSQL keeps its native ``UUID`` column; every other backend stores
    ``CHAR(36)``. Bound values are parsed as UUIDs, so a malformed id fails on
    write, and both directions hand back ``str``. Shadow-set lookups compare
    ``financial_entry_id`` against entry ids as plain strings.
    """

    impl = CHAR(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):  # type: ignore[override]
        if dialect.name == "postgresql":
            return dialect.type_descriptor(postgresql.UUID(as_uuid=False))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return None
        return str(uuid.UUID(str(value)))

    def process_result_value(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return None
        return str(value)

"""Default read predicate for soft-deleted records.

Writes never remove auditable rows (see ``app.db.audit_interceptor``); every
read path goes through these helpers so tombstones stay hidden unless the
caller explicitly asks for them.
"""

from __future__ import annotations

from typing import TypeVar

from sqlalchemy import Select, select
from sqlalchemy.sql.elements import ColumnElement

T = TypeVar("T")


def not_deleted(model) -> ColumnElement[bool]:
    """Predicate matching live (non-tombstoned) rows of ``model``."""
    return model.is_deleted.is_(False)


def select_records(model: type[T], *, include_deleted: bool = False) -> Select[tuple[T]]:
    """SELECT for ``model`` with the soft-delete filter applied by default."""
    stmt = select(model)
    if not include_deleted:
        stmt = stmt.where(not_deleted(model))
    return stmt

from datetime import datetime
from typing import Protocol, runtime_checkable

from sqlalchemy import Boolean, DateTime, String, false
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


@runtime_checkable
class Auditable(Protocol):
    """
    Capability implemented by every record that carries audit metadata.

    The audit interceptor targets this protocol rather than a base class,
    so models that declare the columns themselves are stamped too.
    """

    created_at: datetime | None
    created_by: str | None
    modified_at: datetime | None
    modified_by: str | None
    is_deleted: bool
    deleted_at: datetime | None
    deleted_by: str | None


class AuditMixin:
    """Shared audit and soft-delete columns."""

    # Stamped by the audit interceptor on insert; never written by callers.
    # active_history keeps the committed value in attribute history so the
    # interceptor can restore it when a caller overwrites it.
    created_at: Mapped[datetime] = mapped_column(nullable=False, active_history=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, active_history=True)
    modified_at: Mapped[datetime | None] = mapped_column(nullable=True)
    modified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        active_history=True,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, active_history=True)
    deleted_by: Mapped[str | None] = mapped_column(
        String(255), nullable=True, active_history=True
    )

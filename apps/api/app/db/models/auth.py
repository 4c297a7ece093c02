"""SQLAlchemy ORM models for users and departments."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, String, Uuid, false, true
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import AuditMixin, Base
from app.db.enums import Role


class Department(AuditMixin, Base):
    """Organisational unit with a shared mailbox."""

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class User(Base):
    """
    Application user.

    Credentials live with the external identity provider. The audit columns
    are declared here rather than inherited from AuditMixin; the audit
    interceptor stamps this model through the Auditable protocol all the same.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), default=Role.OPERATOR.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )

    # Audit
    created_at: Mapped[datetime] = mapped_column(nullable=False, active_history=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, active_history=True)
    modified_at: Mapped[datetime | None] = mapped_column(nullable=True)
    modified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False, active_history=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True, active_history=True)
    deleted_by: Mapped[str | None] = mapped_column(
        String(255), nullable=True, active_history=True
    )

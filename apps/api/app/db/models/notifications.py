"""SQLAlchemy ORM models for notification configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import AuditMixin, Base
from app.db.enums import RecipientType

if TYPE_CHECKING:
    from app.db.models import Department, User


class NotificationConfig(AuditMixin, Base):
    """
    Per-code email notification settings.

    One row per catalog code, seeded from the notification catalog. Admins
    can disable a code or override its subject line.
    """

    __tablename__ = "notification_configs"
    __table_args__ = (Index("ix_notification_configs_module", "module"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    module: Mapped[str] = mapped_column(String(100), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    email_subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    recipients: Mapped[list["NotificationRecipient"]] = relationship(
        back_populates="config",
        cascade="all",
        order_by="NotificationRecipient.sort_order",
    )


class NotificationRecipient(AuditMixin, Base):
    """
    Recipient rule for a notification config.

    Exactly one of department_id / role / user_id is meaningful, chosen by
    recipient_type.
    """

    __tablename__ = "notification_recipients"
    __table_args__ = (Index("idx_notification_recipients_config", "config_id", "sort_order"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    config_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notification_configs.id", ondelete="CASCADE"), nullable=False
    )
    recipient_type: Mapped[str] = mapped_column(
        String(20), default=RecipientType.DEPARTMENT.value, nullable=False
    )
    department_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("departments.id", ondelete="CASCADE"), nullable=True
    )
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    config: Mapped[NotificationConfig] = relationship(back_populates="recipients")
    department: Mapped["Department | None"] = relationship()
    user: Mapped["User | None"] = relationship()

"""SQLAlchemy ORM models for the contract registry."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.config import settings
from app.db.base import AuditMixin, Base
from app.db.enums import ContractStatus, ContractType


def _default_alert_days() -> int:
    return settings.CONTRACT_ALERT_DAYS_DEFAULT


class Contract(AuditMixin, Base):
    """
    Contract or quote tracked in the registry.

    Renewals are separate rows linked to their predecessor via ``parent_id``;
    the predecessor is moved to RENEWED and never reused.
    """

    __tablename__ = "contracts"
    __table_args__ = (
        Index("idx_contracts_status_expiry", "status", "expiry_date"),
        Index("idx_contracts_parent", "parent_id"),
        Index("ix_contracts_protocol_number", "protocol_number", unique=True),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    protocol_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    external_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    contract_type: Mapped[str] = mapped_column(
        String(20), default=ContractType.CONTRACT.value, nullable=False
    )

    counterparty_name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    owner_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Dates
    document_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Termination notice period (days before expiry)
    notice_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Look-ahead window before the notice deadline
    alert_days: Mapped[int] = mapped_column(
        Integer, default=_default_alert_days, nullable=False
    )
    auto_renew: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    renewal_term_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    annual_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    one_off_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    status: Mapped[str] = mapped_column(
        String(40), default=ContractStatus.DRAFT.value, nullable=False
    )

    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True
    )
    parent: Mapped[Contract | None] = relationship(remote_side=[id])

    @property
    def notice_deadline(self) -> date | None:
        """Last day to send termination notice (expiry when no notice period)."""
        if self.expiry_date is None:
            return None
        return self.expiry_date - timedelta(days=self.notice_days or 0)

    @property
    def alert_date(self) -> date | None:
        """First day the contract is inside its look-ahead window."""
        deadline = self.notice_deadline
        if deadline is None:
            return None
        alert_days = self.alert_days if self.alert_days is not None else _default_alert_days()
        return deadline - timedelta(days=alert_days)

    @property
    def effective_renewal_term_days(self) -> int:
        return self.renewal_term_days or settings.CONTRACT_RENEWAL_TERM_DAYS_DEFAULT

    @property
    def display_name(self) -> str:
        return self.protocol_number or self.title

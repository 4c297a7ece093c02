"""
Contract lifecycle batch routines.

Two scheduled routines re-evaluate the registry against time-based rules:

- ``update_expiry_statuses``: ACTIVE contracts entering their look-ahead
  window become NEAR_EXPIRY; tracked contracts past their expiry date become
  EXPIRED.
- ``process_automatic_renewals``: auto-renewing contracts that reached their
  expiry date get an ACTIVE successor and become RENEWED.

Candidates are collected up front in (expiry_date, id) order. Every record is
then reloaded, re-evaluated and committed in its own transaction, so a
failure on one record rolls back that record only and re-running a routine
is safe: records already in their target state produce no result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context
from app.db.enums import (
    EXPIRY_TRACKED_STATUSES,
    RENEWABLE_STATUSES,
    ContractStatus,
    JobName,
)
from app.db.models import Contract
from app.db.soft_delete import not_deleted
from app.services import contract_service

logger = logging.getLogger(__name__)

ShouldContinue = Callable[[], bool]


@dataclass(frozen=True)
class StatusChangeResult:
    """Summary of one contract's transition within a batch run."""

    contract_id: UUID
    protocol_number: str | None
    title: str
    counterparty_name: str
    expiry_date: date | None
    previous_status: ContractStatus
    new_status: ContractStatus
    successor_id: UUID | None = None
    successor_protocol_number: str | None = None

    @property
    def display_name(self) -> str:
        return self.protocol_number or self.title

    @property
    def change_description(self) -> str:
        description = (
            f"{self.display_name}: {self.previous_status.value} -> {self.new_status.value}"
        )
        if self.successor_id is not None:
            description += f" (renewed as {self.successor_protocol_number or self.successor_id})"
        return description


@dataclass(frozen=True)
class RecordFailure:
    contract_id: UUID
    error: str


@dataclass
class LifecycleRunReport:
    results: list[StatusChangeResult] = field(default_factory=list)
    failures: list[RecordFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def changed(self) -> int:
        return len(self.results)

    def as_dict(self) -> dict:
        return {
            "changed": self.changed,
            "failed": len(self.failures),
            "cancelled": self.cancelled,
        }


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def _status_of(contract: Contract) -> ContractStatus | None:
    try:
        return ContractStatus(contract.status)
    except ValueError:
        return None


def evaluate_expiry_transition(contract: Contract, today: date) -> ContractStatus | None:
    """Target status for ``contract`` on ``today``, or None when nothing changes."""
    status = _status_of(contract)
    if contract.is_deleted or contract.expiry_date is None:
        return None
    if status not in EXPIRY_TRACKED_STATUSES:
        return None

    if contract.expiry_date < today:
        return ContractStatus.EXPIRED
    if status is ContractStatus.ACTIVE:
        alert_date = contract.alert_date
        if alert_date is not None and alert_date <= today:
            return ContractStatus.NEAR_EXPIRY
    return None


def is_renewal_eligible(contract: Contract, today: date) -> bool:
    return (
        not contract.is_deleted
        and bool(contract.auto_renew)
        and _status_of(contract) in RENEWABLE_STATUSES
        and contract.expiry_date is not None
        and contract.expiry_date <= today
    )


def _result_for(
    contract: Contract,
    previous: ContractStatus,
    new: ContractStatus,
    successor: Contract | None = None,
) -> StatusChangeResult:
    return StatusChangeResult(
        contract_id=contract.id,
        protocol_number=contract.protocol_number,
        title=contract.title,
        counterparty_name=contract.counterparty_name,
        expiry_date=contract.expiry_date,
        previous_status=previous,
        new_status=new,
        successor_id=successor.id if successor is not None else None,
        successor_protocol_number=successor.protocol_number if successor is not None else None,
    )


def _run_per_record(
    db: Session,
    job_name: JobName,
    candidate_ids: list[UUID],
    process_one: Callable[[Contract], StatusChangeResult | None],
    should_continue: ShouldContinue | None,
) -> LifecycleRunReport:
    report = LifecycleRunReport()

    for contract_id in candidate_ids:
        if should_continue is not None and not should_continue():
            report.cancelled = True
            logger.info(
                "%s cancelled after %d changes",
                job_name.value,
                report.changed,
                extra=build_log_context(job_name=job_name.value),
            )
            break

        try:
            contract = db.get(Contract, contract_id)
            result = process_one(contract) if contract is not None else None
            if result is None:
                db.rollback()
                continue
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.exception(
                "%s failed for contract %s",
                job_name.value,
                contract_id,
                extra=build_log_context(job_name=job_name.value, contract_id=contract_id),
            )
            report.failures.append(RecordFailure(contract_id=contract_id, error=str(exc)))
            continue

        report.results.append(result)

    return report


def update_expiry_statuses(
    db: Session,
    *,
    today: date | None = None,
    should_continue: ShouldContinue | None = None,
) -> LifecycleRunReport:
    """Move contracts to NEAR_EXPIRY / EXPIRED as of ``today``."""
    today = today or today_utc()
    candidate_ids = list(
        db.scalars(
            select(Contract.id)
            .where(
                not_deleted(Contract),
                Contract.status.in_([s.value for s in EXPIRY_TRACKED_STATUSES]),
                Contract.expiry_date.is_not(None),
            )
            .order_by(Contract.expiry_date, Contract.id)
        ).all()
    )
    db.rollback()

    def _process(contract: Contract) -> StatusChangeResult | None:
        target = evaluate_expiry_transition(contract, today)
        if target is None:
            return None
        previous = ContractStatus(contract.status)
        contract.status = target.value
        result = _result_for(contract, previous, target)
        db.flush()
        return result

    report = _run_per_record(
        db, JobName.CONTRACT_EXPIRY_UPDATE, candidate_ids, _process, should_continue
    )
    logger.info(
        "Expiry update complete (candidates=%d changed=%d failed=%d cancelled=%s)",
        len(candidate_ids),
        report.changed,
        len(report.failures),
        report.cancelled,
    )
    return report


def process_automatic_renewals(
    db: Session,
    *,
    today: date | None = None,
    should_continue: ShouldContinue | None = None,
) -> LifecycleRunReport:
    """Renew every eligible auto-renewing contract as of ``today``."""
    today = today or today_utc()
    candidate_ids = list(
        db.scalars(
            select(Contract.id)
            .where(
                not_deleted(Contract),
                Contract.auto_renew.is_(True),
                Contract.status.in_([s.value for s in RENEWABLE_STATUSES]),
                Contract.expiry_date.is_not(None),
                Contract.expiry_date <= today,
            )
            .order_by(Contract.expiry_date, Contract.id)
        ).all()
    )
    db.rollback()

    def _process(contract: Contract) -> StatusChangeResult | None:
        if not is_renewal_eligible(contract, today):
            return None
        previous = ContractStatus(contract.status)
        successor = contract_service.renew_contract(db, contract, today=today)
        return _result_for(contract, previous, ContractStatus.RENEWED, successor)

    report = _run_per_record(
        db, JobName.CONTRACT_AUTO_RENEWAL, candidate_ids, _process, should_continue
    )
    logger.info(
        "Automatic renewals complete (candidates=%d renewed=%d failed=%d cancelled=%s)",
        len(candidate_ids),
        report.changed,
        len(report.failures),
        report.cancelled,
    )
    return report

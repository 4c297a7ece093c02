"""Contract service - registry reads, protocol numbering and renewal cloning."""

from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.enums import RENEWABLE_STATUSES, ContractStatus, ContractType
from app.db.models import Contract
from app.db.soft_delete import select_records

logger = logging.getLogger(__name__)

PROTOCOL_PREFIXES = {
    ContractType.CONTRACT: "CONTR",
    ContractType.QUOTE: "PREV",
}

_TRAILING_DIGITS = re.compile(r"(\d+)$")


class ContractStateError(ValueError):
    """Raised when an operation is not allowed in the contract's current status."""


def _protocol_sequence(protocol_number: str | None) -> int:
    if not protocol_number:
        return 0
    match = _TRAILING_DIGITS.search(protocol_number.strip())
    return int(match.group(1)) if match else 0


def generate_protocol_number(
    db: Session,
    contract_type: ContractType | str = ContractType.CONTRACT,
    *,
    year: int | None = None,
) -> str:
    """
    Next protocol number, formatted ``PREFIX-YYYY-NNNN``.

    The sequence is global across prefixes and years. Tombstoned rows are
    counted so a number is never handed out twice.
    """
    kind = ContractType(contract_type)
    numbers = db.scalars(
        select(Contract.protocol_number).where(Contract.protocol_number.is_not(None))
    ).all()
    next_sequence = max((_protocol_sequence(n) for n in numbers), default=0) + 1
    return f"{PROTOCOL_PREFIXES[kind]}-{year or date.today().year}-{next_sequence:04d}"


def get_contract(
    db: Session, contract_id: UUID, *, include_deleted: bool = False
) -> Contract | None:
    return db.scalars(
        select_records(Contract, include_deleted=include_deleted).where(
            Contract.id == contract_id
        )
    ).first()


def list_contracts(
    db: Session,
    *,
    status: ContractStatus | None = None,
    include_deleted: bool = False,
) -> list[Contract]:
    stmt = select_records(Contract, include_deleted=include_deleted)
    if status is not None:
        stmt = stmt.where(Contract.status == status.value)
    stmt = stmt.order_by(Contract.expiry_date, Contract.id)
    return list(db.scalars(stmt).all())


def build_renewal(source: Contract, *, protocol_number: str, document_date: date) -> Contract:
    """
    Clone ``source`` into its active successor (not added to a session).

    The successor starts the day after the source expires and runs for the
    source's renewal term. It is documented on ``document_date`` (the renewal
    day). One-off amounts belong to the original term only.
    """
    if source.expiry_date is None:
        raise ContractStateError(f"Contract {source.id} has no expiry date to renew from")

    effective_date = source.expiry_date + timedelta(days=1)
    term_days = source.effective_renewal_term_days
    return Contract(
        protocol_number=protocol_number,
        external_reference=source.external_reference,
        contract_type=source.contract_type,
        counterparty_name=source.counterparty_name,
        title=source.title,
        owner_name=source.owner_name,
        notes=source.notes,
        document_date=document_date,
        effective_date=effective_date,
        expiry_date=effective_date + timedelta(days=term_days),
        notice_days=source.notice_days,
        alert_days=source.alert_days,
        auto_renew=source.auto_renew,
        renewal_term_days=source.renewal_term_days,
        annual_amount=source.annual_amount,
        one_off_amount=None,
        status=ContractStatus.ACTIVE.value,
        parent_id=source.id,
    )


def renew_contract(db: Session, contract: Contract, *, today: date | None = None) -> Contract:
    """
    Create the successor of ``contract`` and mark ``contract`` as RENEWED.

    ``today`` dates the successor document and picks the protocol year.

    Flushes so the successor has its id; the caller owns the commit.
    """
    if contract.is_deleted:
        raise ContractStateError(f"Contract {contract.id} is deleted")
    if contract.status not in {status.value for status in RENEWABLE_STATUSES}:
        raise ContractStateError(
            f"Contract {contract.id} cannot be renewed from status {contract.status}"
        )

    today = today or date.today()
    successor = build_renewal(
        contract,
        protocol_number=generate_protocol_number(db, contract.contract_type, year=today.year),
        document_date=today,
    )
    db.add(successor)
    contract.status = ContractStatus.RENEWED.value
    db.flush()

    logger.info(
        "Renewed contract %s as %s (%s)",
        contract.id,
        successor.id,
        successor.protocol_number,
    )
    return successor


def delete_contract(db: Session, contract_id: UUID) -> bool:
    """
    Delete a contract on behalf of the current actor.

    The audit interceptor turns this into a tombstone. Returns False when the
    contract does not exist or is already deleted.
    """
    contract = get_contract(db, contract_id)
    if contract is None:
        return False
    db.delete(contract)
    db.commit()
    return True

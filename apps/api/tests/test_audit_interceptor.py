"""Tests for audit stamping and soft-delete conversion on flush."""

from datetime import datetime, timezone
from types import SimpleNamespace

from sqlalchemy import select

from app.core.request_audit_context import SYSTEM_ACTOR, actor_context
from app.db.audit_interceptor import (
    AuditSnapshot,
    ChangeKind,
    PendingChange,
    apply_audit_rules,
)
from app.db.base import Auditable
from app.db.models import Contract, JobRun, User
from app.db.soft_delete import select_records


NOW = datetime(2026, 6, 15, 9, 30, tzinfo=timezone.utc)


def _record(**overrides):
    fields = dict(
        created_at=None,
        created_by=None,
        modified_at=None,
        modified_by=None,
        is_deleted=False,
        deleted_at=None,
        deleted_by=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


# =============================================================================
# apply_audit_rules (pure)
# =============================================================================


def test_added_record_is_stamped_and_forced_live():
    record = _record(is_deleted=True, deleted_by="someone")

    [change] = apply_audit_rules(
        [PendingChange(record=record, kind=ChangeKind.ADDED)], actor="alice", now=NOW
    )

    assert change.kind is ChangeKind.ADDED
    assert record.created_at == NOW
    assert record.created_by == "alice"
    assert record.is_deleted is False
    assert record.deleted_at is None
    assert record.deleted_by is None


def test_modified_record_restores_created_fields():
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    record = _record(created_at=NOW, created_by="mallory")
    snapshot = AuditSnapshot(
        created_at=created,
        created_by="bob",
        is_deleted=False,
        deleted_at=None,
        deleted_by=None,
    )

    apply_audit_rules(
        [PendingChange(record=record, kind=ChangeKind.MODIFIED, committed=snapshot)],
        actor="alice",
        now=NOW,
    )

    assert record.created_at == created
    assert record.created_by == "bob"
    assert record.modified_at == NOW
    assert record.modified_by == "alice"


def test_delete_request_becomes_tombstone_update():
    record = _record(created_at=NOW, created_by="bob")
    snapshot = AuditSnapshot(NOW, "bob", False, None, None)

    [change] = apply_audit_rules(
        [PendingChange(record=record, kind=ChangeKind.DELETED, committed=snapshot)],
        actor="alice",
        now=NOW,
    )

    assert change.kind is ChangeKind.MODIFIED
    assert change.delete_converted is True
    assert record.is_deleted is True
    assert record.deleted_at == NOW
    assert record.deleted_by == "alice"
    assert record.modified_at is None


def test_tombstone_cannot_be_cleared_or_restamped():
    deleted_at = datetime(2026, 1, 2, tzinfo=timezone.utc)
    record = _record(is_deleted=False, deleted_at=None, deleted_by=None)
    snapshot = AuditSnapshot(NOW, "bob", True, deleted_at, "carol")

    apply_audit_rules(
        [PendingChange(record=record, kind=ChangeKind.MODIFIED, committed=snapshot)],
        actor="alice",
        now=NOW,
    )

    assert record.is_deleted is True
    assert record.deleted_at == deleted_at
    assert record.deleted_by == "carol"


# =============================================================================
# Session integration
# =============================================================================


def test_models_implement_auditable():
    assert isinstance(Contract(), Auditable)
    assert isinstance(User(), Auditable)
    assert not isinstance(JobRun(), Auditable)


def test_new_record_gets_created_stamp_from_system_actor(db, make_contract):
    contract = make_contract()

    assert contract.created_at is not None
    assert contract.created_by == SYSTEM_ACTOR
    assert contract.is_deleted is False
    assert contract.modified_at is None


def test_created_stamp_uses_ambient_actor(db, make_contract):
    with actor_context("alice@example.com"):
        contract = make_contract()

    assert contract.created_by == "alice@example.com"


def test_update_stamps_modified_and_keeps_created(db, make_contract):
    contract = make_contract()
    created_at = contract.created_at
    created_by = contract.created_by

    with actor_context("bob@example.com"):
        contract.title = "Renegotiated agreement"
        contract.created_by = "mallory"
        contract.created_at = datetime(2000, 1, 1)
        db.commit()

    db.refresh(contract)
    assert contract.title == "Renegotiated agreement"
    assert contract.created_at == created_at
    assert contract.created_by == created_by
    assert contract.modified_by == "bob@example.com"
    assert contract.modified_at is not None


def test_overwriting_expired_created_by_is_reverted(db, make_contract):
    contract = make_contract()
    # Attributes are expired after commit; assign without reading first.
    contract.created_by = "mallory"
    db.commit()

    db.refresh(contract)
    assert contract.created_by == SYSTEM_ACTOR


def test_delete_keeps_row_as_tombstone(db, make_contract):
    contract = make_contract()
    contract_id = contract.id

    with actor_context("carol@example.com"):
        db.delete(contract)
        db.commit()

    assert db.scalars(select_records(Contract)).all() == []

    stored = db.scalars(select_records(Contract, include_deleted=True)).one()
    assert stored.id == contract_id
    assert stored.is_deleted is True
    assert stored.deleted_by == "carol@example.com"
    assert stored.deleted_at is not None
    assert stored.modified_at is None


def test_repeated_delete_keeps_original_stamp(db, make_contract):
    contract = make_contract()
    with actor_context("carol@example.com"):
        db.delete(contract)
        db.commit()
    first_deleted_at = contract.deleted_at

    stored = db.scalars(select_records(Contract, include_deleted=True)).one()
    with actor_context("dave@example.com"):
        db.delete(stored)
        db.commit()

    db.refresh(stored)
    assert stored.is_deleted is True
    assert stored.deleted_by == "carol@example.com"
    assert stored.deleted_at == first_deleted_at


def test_clearing_is_deleted_does_not_undelete(db, make_contract):
    contract = make_contract()
    db.delete(contract)
    db.commit()

    contract.is_deleted = False
    contract.deleted_by = None
    db.commit()

    db.refresh(contract)
    assert contract.is_deleted is True
    assert contract.deleted_by == SYSTEM_ACTOR


def test_setting_is_deleted_stamps_deletion_once(db, make_contract):
    contract = make_contract()

    with actor_context("erin@example.com"):
        contract.is_deleted = True
        db.commit()

    db.refresh(contract)
    assert contract.deleted_by == "erin@example.com"
    assert contract.deleted_at is not None
    assert contract.modified_at is None


def test_user_declaring_columns_itself_is_audited(db, make_user):
    user = make_user()
    assert user.created_by == SYSTEM_ACTOR

    db.delete(user)
    db.commit()

    stored = db.scalars(select(User)).one()
    assert stored.is_deleted is True


def test_non_auditable_records_pass_through(db):
    run = JobRun(
        job_name="contract_expiry_update",
        started_at=datetime(2026, 6, 15, 6, 0, tzinfo=timezone.utc),
    )
    db.add(run)
    db.commit()

    db.delete(run)
    db.commit()

    assert db.scalars(select(JobRun)).all() == []

"""
Audit interceptor for every session commit.

Runs on ``before_flush`` and applies the same rules to every record that
implements the ``Auditable`` capability, whatever business code produced
the change:

- new record: stamp ``created_at``/``created_by``, force ``is_deleted = False``
- updated record: keep ``created_*`` at their committed values, stamp
  ``modified_*`` unless the update is itself a deletion
- delete request: keep the row, tombstone it (``is_deleted``, ``deleted_*``)

Tombstones are final: a deleted row keeps its original ``deleted_*`` stamp and
cannot be un-deleted through the ORM. The rules live in ``apply_audit_rules``,
which takes the pending changes plus the caller identity and returns the
adjusted change set; the listener only translates session state in and out.

Bulk ``Query.delete()``/``update()`` statements bypass the unit of work and
therefore this interceptor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from app.core.request_audit_context import get_current_actor
from app.core.structured_logging import build_log_context
from app.db.base import Auditable

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """State of a record in the pending unit of work."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class AuditSnapshot:
    """Audit values as last committed to the database."""

    created_at: datetime | None
    created_by: str | None
    is_deleted: bool
    deleted_at: datetime | None
    deleted_by: str | None


@dataclass(frozen=True)
class PendingChange:
    record: Auditable
    kind: ChangeKind
    committed: AuditSnapshot | None = None
    # True when a physical delete was rewritten into a tombstone update
    delete_converted: bool = False


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def apply_audit_rules(
    changes: Iterable[PendingChange],
    *,
    actor: str,
    now: datetime,
) -> list[PendingChange]:
    """
    Stamp audit fields on each pending record and rewrite deletes as updates.

    Mutates the records in place and returns the adjusted change set: no
    returned change is ever of kind DELETED.
    """
    adjusted: list[PendingChange] = []
    for change in changes:
        record = change.record

        if change.kind is ChangeKind.ADDED:
            record.created_at = now
            record.created_by = actor
            record.is_deleted = False
            record.deleted_at = None
            record.deleted_by = None
            adjusted.append(change)
            continue

        committed = change.committed
        if committed is not None:
            record.created_at = committed.created_at
            record.created_by = committed.created_by

        if committed is not None and committed.is_deleted:
            record.is_deleted = True
            record.deleted_at = committed.deleted_at
            record.deleted_by = committed.deleted_by
        elif change.kind is ChangeKind.DELETED or record.is_deleted:
            record.is_deleted = True
            record.deleted_at = now
            record.deleted_by = actor
        else:
            record.modified_at = now
            record.modified_by = actor

        adjusted.append(
            replace(
                change,
                kind=ChangeKind.MODIFIED,
                delete_converted=change.kind is ChangeKind.DELETED,
            )
        )
    return adjusted


_SNAPSHOT_FIELDS = ("created_at", "created_by", "is_deleted", "deleted_at", "deleted_by")


def _committed_value(record, key: str):
    attr = inspect(record).attrs[key]
    history = attr.history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    # Expired or never loaded: reading it loads the committed row value.
    return attr.value


def snapshot_committed(record) -> AuditSnapshot:
    values = {key: _committed_value(record, key) for key in _SNAPSHOT_FIELDS}
    values["is_deleted"] = bool(values["is_deleted"])
    return AuditSnapshot(**values)


def collect_pending_changes(session: Session) -> list[PendingChange]:
    """Build the pending change set for auditable records in ``session``."""
    changes: list[PendingChange] = []
    deleted_ids: set[int] = set()

    with session.no_autoflush:
        for record in list(session.new):
            if isinstance(record, Auditable):
                changes.append(PendingChange(record=record, kind=ChangeKind.ADDED))

        for record in list(session.deleted):
            deleted_ids.add(id(record))
            if isinstance(record, Auditable):
                changes.append(
                    PendingChange(
                        record=record,
                        kind=ChangeKind.DELETED,
                        committed=snapshot_committed(record),
                    )
                )

        for record in list(session.dirty):
            if id(record) in deleted_ids or not isinstance(record, Auditable):
                continue
            if not session.is_modified(record, include_collections=False):
                continue
            changes.append(
                PendingChange(
                    record=record,
                    kind=ChangeKind.MODIFIED,
                    committed=snapshot_committed(record),
                )
            )

    return changes


def _before_flush(session: Session, flush_context, instances) -> None:
    changes = collect_pending_changes(session)
    if not changes:
        return

    actor = get_current_actor()
    adjusted = apply_audit_rules(changes, actor=actor, now=utcnow())

    for change in adjusted:
        if change.delete_converted:
            # Re-adding a pending-delete instance cancels the DELETE; the
            # tombstone columns set above are flushed as an UPDATE instead.
            session.add(change.record)
            logger.debug(
                "Soft-deleted %s by %s",
                type(change.record).__name__,
                actor,
                extra=build_log_context(actor=actor),
            )


def install_audit_interceptor(target) -> None:
    """Register the interceptor on a Session class, sessionmaker or session."""
    if not event.contains(target, "before_flush", _before_flush):
        event.listen(target, "before_flush", _before_flush)


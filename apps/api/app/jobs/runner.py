"""Run a registered lifecycle job and record it in the job run ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.request_audit_context import actor_context
from app.core.structured_logging import build_log_context
from app.db.enums import JobName, JobRunStatus, JobTrigger
from app.db.session import SessionLocal
from app.jobs.context import JobContext
from app.jobs.registry import resolve_job_handler
from app.services import job_service

logger = logging.getLogger(__name__)


class JobAlreadyRunningError(RuntimeError):
    """Raised when another trigger is still running the same job."""

    def __init__(self, job_name: str, run_id: UUID):
        super().__init__(f"Job {job_name} is already running (run {run_id})")
        self.job_name = job_name
        self.run_id = run_id


@dataclass(frozen=True)
class JobRunSummary:
    run_id: UUID
    job_name: str
    trigger: str
    status: str
    records_changed: int
    failure_count: int
    stats: dict = field(default_factory=dict)


def default_send_email(job_name: str) -> bool:
    if job_name == JobName.CONTRACT_EXPIRY_UPDATE.value:
        return settings.EXPIRY_JOB_SEND_EMAIL
    if job_name == JobName.CONTRACT_AUTO_RENEWAL.value:
        return settings.RENEWAL_JOB_SEND_EMAIL
    return True


async def execute_job(
    job_name: str,
    *,
    trigger: JobTrigger = JobTrigger.MANUAL,
    send_email: bool | None = None,
    should_continue: Callable[[], bool] | None = None,
    today: date | None = None,
    session_factory: Callable[[], Session] | None = None,
) -> JobRunSummary:
    """
    Execute ``job_name`` in a fresh session on behalf of the System actor.

    Unknown names raise ValueError before anything is recorded. A recent
    RUNNING row for the same job (from the scheduler, the internal endpoints
    or the CLI) raises JobAlreadyRunningError. Handler exceptions mark the
    run FAILED and are re-raised.
    """
    handler = resolve_job_handler(job_name)
    if send_email is None:
        send_email = default_send_email(job_name)
    factory = session_factory or SessionLocal

    with actor_context(None), factory() as db:
        active = job_service.find_active_run(
            db, job_name, stale_after=timedelta(minutes=settings.JOB_RUN_STALE_MINUTES)
        )
        if active is not None:
            raise JobAlreadyRunningError(job_name, active.id)

        run = job_service.start_run(db, job_name, trigger)
        log_context = build_log_context(job_name=job_name, run_id=run.id)
        ctx = JobContext(
            job_name=job_name,
            run_id=run.id,
            trigger=trigger,
            send_email=send_email,
            should_continue=should_continue,
            today=today,
        )

        try:
            report, stats = await handler(db, ctx)
        except Exception as exc:
            db.rollback()
            job_service.fail_run(db, run, str(exc) or exc.__class__.__name__)
            logger.exception("Job %s failed", job_name, extra=log_context)
            raise

        failure_count = len(report.failures)
        if report.cancelled:
            run = job_service.cancel_run(
                db, run, records_changed=report.changed, failure_count=failure_count
            )
        else:
            run = job_service.complete_run(
                db,
                run,
                records_changed=report.changed,
                failure_count=failure_count,
                last_error=report.failures[-1].error if report.failures else None,
            )

        if run.status != JobRunStatus.COMPLETED.value or failure_count:
            logger.warning(
                "Job %s finished %s with %d record failures",
                job_name,
                run.status,
                failure_count,
                extra=log_context,
            )

        return JobRunSummary(
            run_id=run.id,
            job_name=run.job_name,
            trigger=run.trigger,
            status=run.status,
            records_changed=run.records_changed,
            failure_count=run.failure_count,
            stats=stats,
        )

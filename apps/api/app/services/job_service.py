"""Job service - run ledger for scheduled lifecycle jobs."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.enums import JobName, JobRunStatus, JobTrigger
from app.db.models import JobRun

MAX_ERROR_LENGTH = 2000


def _now() -> datetime:
    return datetime.now(timezone.utc)


def find_active_run(
    db: Session, job_name: JobName | str, *, stale_after: timedelta
) -> JobRun | None:
    """Most recent RUNNING run of ``job_name`` started within ``stale_after``."""
    name = job_name.value if isinstance(job_name, JobName) else job_name
    return db.scalars(
        select(JobRun)
        .where(
            JobRun.job_name == name,
            JobRun.status == JobRunStatus.RUNNING.value,
            JobRun.started_at >= _now() - stale_after,
        )
        .order_by(JobRun.started_at.desc())
    ).first()


def start_run(db: Session, job_name: JobName | str, trigger: JobTrigger) -> JobRun:
    """Record a job run as RUNNING."""
    run = JobRun(
        job_name=job_name.value if isinstance(job_name, JobName) else job_name,
        trigger=trigger.value,
        status=JobRunStatus.RUNNING.value,
        started_at=_now(),
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def _finish(
    db: Session,
    run: JobRun,
    status: JobRunStatus,
    *,
    records_changed: int = 0,
    failure_count: int = 0,
    last_error: str | None = None,
) -> JobRun:
    run.status = status.value
    run.finished_at = _now()
    run.records_changed = records_changed
    run.failure_count = failure_count
    run.last_error = last_error[:MAX_ERROR_LENGTH] if last_error else None
    db.commit()
    db.refresh(run)
    return run


def complete_run(
    db: Session,
    run: JobRun,
    *,
    records_changed: int,
    failure_count: int = 0,
    last_error: str | None = None,
) -> JobRun:
    return _finish(
        db,
        run,
        JobRunStatus.COMPLETED,
        records_changed=records_changed,
        failure_count=failure_count,
        last_error=last_error,
    )


def cancel_run(
    db: Session, run: JobRun, *, records_changed: int, failure_count: int = 0
) -> JobRun:
    """Job stopped between records; committed changes stay in place."""
    return _finish(
        db,
        run,
        JobRunStatus.CANCELLED,
        records_changed=records_changed,
        failure_count=failure_count,
    )


def fail_run(db: Session, run: JobRun, error: str) -> JobRun:
    return _finish(db, run, JobRunStatus.FAILED, last_error=error)


def list_runs(db: Session, job_name: str | None = None, limit: int = 50) -> list[JobRun]:
    """Most recent runs first."""
    stmt = select(JobRun).order_by(JobRun.started_at.desc()).limit(limit)
    if job_name:
        stmt = stmt.where(JobRun.job_name == job_name)
    return list(db.scalars(stmt).all())

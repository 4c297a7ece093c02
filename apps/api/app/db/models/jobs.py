"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import JobRunStatus, JobTrigger


class JobRun(Base):
    """
    One execution of a scheduled lifecycle job.

    Append-only operational log written by the scheduler, the internal
    endpoints and the CLI. Not auditable: rows are never edited by users.
    """

    __tablename__ = "job_runs"
    __table_args__ = (Index("idx_job_runs_name_started", "job_name", "started_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    job_name: Mapped[str] = mapped_column(String(100), nullable=False)
    trigger: Mapped[str] = mapped_column(
        String(20), default=JobTrigger.SCHEDULE.value, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=JobRunStatus.RUNNING.value, nullable=False
    )
    started_at: Mapped[datetime] = mapped_column(nullable=False)
    finished_at: Mapped[datetime | None] = mapped_column(nullable=True)
    records_changed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failure_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

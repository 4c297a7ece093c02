"""Pydantic schemas for lifecycle job runs."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class JobRunRead(BaseModel):
    """Job run ledger entry."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_name: str
    trigger: str
    status: str
    started_at: datetime
    finished_at: datetime | None
    records_changed: int
    failure_count: int
    last_error: str | None


class ScheduledJobResponse(BaseModel):
    """Result of a job triggered through /internal/scheduled."""
    model_config = ConfigDict(from_attributes=True)

    run_id: UUID
    job_name: str
    status: str
    records_changed: int
    failure_count: int
    stats: dict = {}

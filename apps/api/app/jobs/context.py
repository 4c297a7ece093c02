"""Per-run context handed to lifecycle job handlers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable
from uuid import UUID

from app.db.enums import JobTrigger


@dataclass(frozen=True)
class JobContext:
    job_name: str
    run_id: UUID | None = None
    trigger: JobTrigger = JobTrigger.MANUAL
    send_email: bool = True
    should_continue: Callable[[], bool] | None = None
    # Override "today" (manual back-fills and tests); None means the UTC date.
    today: date | None = None

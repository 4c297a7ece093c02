"""Pydantic schemas."""

from app.schemas.job import JobRunRead, ScheduledJobResponse

__all__ = ["JobRunRead", "ScheduledJobResponse"]

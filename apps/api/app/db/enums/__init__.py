"""Enum definitions for application constants."""

from app.db.enums.auth import Role
from app.db.enums.contracts import (
    EXPIRY_TRACKED_STATUSES,
    RENEWABLE_STATUSES,
    ContractStatus,
    ContractType,
    RecipientType,
)
from app.db.enums.jobs import JobName, JobRunStatus, JobTrigger

__all__ = [
    "ContractStatus",
    "ContractType",
    "EXPIRY_TRACKED_STATUSES",
    "JobName",
    "JobRunStatus",
    "JobTrigger",
    "RENEWABLE_STATUSES",
    "RecipientType",
    "Role",
]

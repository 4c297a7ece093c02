"""SQLAlchemy ORM models."""

from app.db.models.auth import Department, User
from app.db.models.contracts import Contract
from app.db.models.jobs import JobRun
from app.db.models.notifications import NotificationConfig, NotificationRecipient

__all__ = [
    "Contract",
    "Department",
    "JobRun",
    "NotificationConfig",
    "NotificationRecipient",
    "User",
]

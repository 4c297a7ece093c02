"""Job-related enums."""

from enum import Enum


class JobName(str, Enum):
    """Stable names of the scheduled lifecycle jobs."""

    CONTRACT_EXPIRY_UPDATE = "contract_expiry_update"
    CONTRACT_AUTO_RENEWAL = "contract_auto_renewal"


class JobTrigger(str, Enum):
    SCHEDULE = "schedule"
    MANUAL = "manual"


class JobRunStatus(str, Enum):
    """Status of a recorded job run."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

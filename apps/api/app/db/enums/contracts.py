"""Contract registry enums."""

from enum import Enum


class ContractType(str, Enum):
    """Kind of registry entry; drives the protocol number prefix."""

    CONTRACT = "contract"
    QUOTE = "quote"


class ContractStatus(str, Enum):
    """Lifecycle states of a registry entry."""

    DRAFT = "draft"
    IN_REVIEW = "in_review"
    SENT = "sent"
    ACTIVE = "active"
    NEAR_EXPIRY = "near_expiry"
    NEAR_EXPIRY_RENEWAL_PROPOSED = "near_expiry_renewal_proposed"
    EXPIRED = "expired"
    RENEWED = "renewed"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


# States the expiry batch re-evaluates.
EXPIRY_TRACKED_STATUSES = frozenset(
    {
        ContractStatus.ACTIVE,
        ContractStatus.NEAR_EXPIRY,
        ContractStatus.NEAR_EXPIRY_RENEWAL_PROPOSED,
    }
)

# States from which an auto-renewing contract may be renewed.
RENEWABLE_STATUSES = frozenset(
    {
        ContractStatus.NEAR_EXPIRY,
        ContractStatus.NEAR_EXPIRY_RENEWAL_PROPOSED,
        ContractStatus.EXPIRED,
    }
)


class RecipientType(str, Enum):
    """How a notification recipient row resolves to email addresses."""

    DEPARTMENT = "department"
    ROLE = "role"
    USER = "user"

"""Catalog of operations that generate email notifications.

This is the single source of truth for notification codes, their owning
module and the default subject line. Per-code runtime settings (enabled flag,
subject override, recipients) live in ``notification_configs`` and are seeded
from this catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


FALLBACK_SUBJECT = "Notification"


class NotificationCode(str, Enum):
    # Contract registry
    CONTRACT_NEAR_EXPIRY = "CONTRACT_NEAR_EXPIRY"
    CONTRACT_EXPIRED = "CONTRACT_EXPIRED"
    CONTRACT_AUTO_RENEWED = "CONTRACT_AUTO_RENEWED"

    # Tenders
    TENDER_NEW = "TENDER_NEW"
    TENDER_STATUS_CHANGE = "TENDER_STATUS_CHANGE"
    TENDER_LOT_NEAR_EXPIRY = "TENDER_LOT_NEAR_EXPIRY"

    # Vehicles
    VEHICLE_DEADLINE = "VEHICLE_DEADLINE"
    VEHICLE_ASSIGNMENT = "VEHICLE_ASSIGNMENT"
    VEHICLE_RETURN = "VEHICLE_RETURN"

    # Quotes
    QUOTE_NEW = "QUOTE_NEW"
    QUOTE_STATUS_CHANGE = "QUOTE_STATUS_CHANGE"

    # Integration requests
    INTEGRATION_REQUEST_NEW = "INTEGRATION_REQUEST_NEW"
    INTEGRATION_REQUEST_ANSWERED = "INTEGRATION_REQUEST_ANSWERED"


@dataclass(frozen=True)
class NotificationDefinition:
    code: str
    description: str
    module: str
    default_subject: str


def _definitions() -> list[NotificationDefinition]:
    return [
        NotificationDefinition(
            code=NotificationCode.CONTRACT_NEAR_EXPIRY.value,
            description="Contract nearing expiry",
            module="contracts",
            default_subject="Contract nearing expiry",
        ),
        NotificationDefinition(
            code=NotificationCode.CONTRACT_EXPIRED.value,
            description="Contract expired",
            module="contracts",
            default_subject="Contract expired",
        ),
        NotificationDefinition(
            code=NotificationCode.CONTRACT_AUTO_RENEWED.value,
            description="Automatic renewal created",
            module="contracts",
            default_subject="Contract automatically renewed",
        ),
        NotificationDefinition(
            code=NotificationCode.TENDER_NEW.value,
            description="New tender created",
            module="tenders",
            default_subject="New tender",
        ),
        NotificationDefinition(
            code=NotificationCode.TENDER_STATUS_CHANGE.value,
            description="Tender status changed",
            module="tenders",
            default_subject="Tender status changed",
        ),
        NotificationDefinition(
            code=NotificationCode.TENDER_LOT_NEAR_EXPIRY.value,
            description="Tender lot nearing deadline",
            module="tenders",
            default_subject="Tender lot nearing deadline",
        ),
        NotificationDefinition(
            code=NotificationCode.VEHICLE_DEADLINE.value,
            description="Vehicle deadline approaching",
            module="vehicles",
            default_subject="Vehicle deadline",
        ),
        NotificationDefinition(
            code=NotificationCode.VEHICLE_ASSIGNMENT.value,
            description="Vehicle assigned",
            module="vehicles",
            default_subject="Vehicle assignment",
        ),
        NotificationDefinition(
            code=NotificationCode.VEHICLE_RETURN.value,
            description="Vehicle returned",
            module="vehicles",
            default_subject="Vehicle return",
        ),
        NotificationDefinition(
            code=NotificationCode.QUOTE_NEW.value,
            description="New quote",
            module="quotes",
            default_subject="New quote",
        ),
        NotificationDefinition(
            code=NotificationCode.QUOTE_STATUS_CHANGE.value,
            description="Quote status changed",
            module="quotes",
            default_subject="Quote status changed",
        ),
        NotificationDefinition(
            code=NotificationCode.INTEGRATION_REQUEST_NEW.value,
            description="New integration request",
            module="integration_requests",
            default_subject="New integration request",
        ),
        NotificationDefinition(
            code=NotificationCode.INTEGRATION_REQUEST_ANSWERED.value,
            description="Integration request answered",
            module="integration_requests",
            default_subject="Integration request answered",
        ),
    ]


CATALOG: Mapping[str, NotificationDefinition] = MappingProxyType(
    {definition.code: definition for definition in _definitions()}
)


def _code_value(code: NotificationCode | str) -> str:
    return code.value if isinstance(code, NotificationCode) else code


def get_definition(code: NotificationCode | str) -> NotificationDefinition | None:
    return CATALOG.get(_code_value(code))


def resolve_default_subject(code: NotificationCode | str) -> str:
    """Default subject for ``code``; unknown codes get FALLBACK_SUBJECT."""
    definition = get_definition(code)
    return definition.default_subject if definition else FALLBACK_SUBJECT


def list_definitions() -> list[NotificationDefinition]:
    """All definitions in declaration order (used for seeding)."""
    return list(CATALOG.values())

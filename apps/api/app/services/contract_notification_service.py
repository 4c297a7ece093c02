"""Email notifications for lifecycle batch results.

Results are grouped by the status they moved to; each group becomes one
email to the recipients configured for its notification code.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Iterable

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import ContractStatus
from app.services import email_service, notification_config_service
from app.services.contract_lifecycle_service import StatusChangeResult
from app.services.notification_catalog import NotificationCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationGroup:
    status: ContractStatus
    code: NotificationCode
    plural_label: str


NOTIFICATION_GROUPS: tuple[NotificationGroup, ...] = (
    NotificationGroup(
        ContractStatus.NEAR_EXPIRY,
        NotificationCode.CONTRACT_NEAR_EXPIRY,
        "contracts nearing expiry",
    ),
    NotificationGroup(
        ContractStatus.EXPIRED,
        NotificationCode.CONTRACT_EXPIRED,
        "contracts expired",
    ),
    NotificationGroup(
        ContractStatus.RENEWED,
        NotificationCode.CONTRACT_AUTO_RENEWED,
        "contracts renewed",
    ),
)


@dataclass
class NotificationStats:
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"sent": self.sent, "skipped": self.skipped, "failed": self.failed}


def build_subject(base: str, results: list[StatusChangeResult], plural_label: str) -> str:
    if len(results) == 1:
        return f"{base}: {results[0].display_name}"
    return f"{base}: {len(results)} {plural_label}"


def _contract_url(contract_id) -> str:
    return f"{settings.app_base_url}/contracts/{contract_id}"


def _link(contract_id, label: str) -> str:
    return f'<a href="{html.escape(_contract_url(contract_id))}">{html.escape(label)}</a>'


def render_results_html(results: Iterable[StatusChangeResult], *, heading: str) -> str:
    """HTML table of results; every interpolated value is escaped."""
    results = list(results)
    show_successor = any(r.successor_id is not None for r in results)

    header_cells = ["Protocol", "Title", "Counterparty", "Expiry date"]
    if show_successor:
        header_cells.append("Renewed as")

    rows = []
    for result in results:
        cells = [
            _link(result.contract_id, result.protocol_number or "-"),
            html.escape(result.title or ""),
            html.escape(result.counterparty_name or ""),
            html.escape(result.expiry_date.isoformat() if result.expiry_date else "-"),
        ]
        if show_successor:
            cells.append(
                _link(result.successor_id, result.successor_protocol_number or "-")
                if result.successor_id is not None
                else "-"
            )
        rows.append("<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>")

    head = "".join(f"<th align=\"left\">{html.escape(cell)}</th>" for cell in header_cells)
    return (
        f"<h2>{html.escape(heading)}</h2>"
        '<table cellpadding="6" cellspacing="0" border="1">'
        f"<thead><tr>{head}</tr></thead>"
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
    )


def group_results(
    results: Iterable[StatusChangeResult],
) -> list[tuple[NotificationGroup, list[StatusChangeResult]]]:
    """Results bucketed per notification group, in group declaration order."""
    results = list(results)
    grouped = []
    for group in NOTIFICATION_GROUPS:
        members = [r for r in results if r.new_status is group.status]
        if members:
            grouped.append((group, members))
    return grouped


async def notify_status_changes(
    db: Session,
    results: Iterable[StatusChangeResult],
    *,
    client: httpx.AsyncClient | None = None,
) -> NotificationStats:
    """
    Send one email per non-empty result group.

    Delivery problems are logged and counted, never raised.
    """
    stats = NotificationStats()
    for group, members in group_results(results):
        try:
            recipients = notification_config_service.get_recipients(db, group.code)
            if not recipients:
                logger.debug(
                    "No recipients for %s, skipping %d results", group.code.value, len(members)
                )
                stats.skipped += 1
                continue

            base_subject = notification_config_service.resolve_subject(db, group.code)
            subject = build_subject(base_subject, members, group.plural_label)
            body = render_results_html(members, heading=base_subject)

            result = await email_service.send_email(recipients, subject, body, client=client)
        except Exception:
            # The transitions behind these results are already committed.
            db.rollback()
            stats.failed += 1
            logger.exception("Notification %s failed", group.code.value)
            continue

        if result.success:
            stats.sent += 1
        else:
            stats.failed += 1
            logger.warning("Notification %s not delivered: %s", group.code.value, result.error)
    return stats

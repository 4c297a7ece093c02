"""Outbound email via the Resend HTTP API.

Thin delivery adapter used by batch notifications. When ``RESEND_API_KEY`` is
not configured the adapter runs in dry-run mode: messages are logged and
reported as delivered without any network call.
"""

from __future__ import annotations

import asyncio
import html as html_module
import logging
import random
import re
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class EmailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None
    dry_run: bool = False


def html_to_text(content: str) -> str:
    """Plain-text alternative for an HTML body."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", content, flags=re.DOTALL | re.I)
    text = re.sub(r"<br\s*/?>|</(p|tr|h\d)>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\s*\n\s*", "\n", text).strip()
    return html_module.unescape(text)


def _backoff_delay(attempt: int) -> float:
    delay = min(RESEND_RETRY_MAX_DELAY, RESEND_RETRY_BASE_DELAY * (2**attempt))
    if delay:
        delay += random.uniform(0, delay / 2)
    return delay


async def _post_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
) -> httpx.Response:
    """Retry connection errors and retryable statuses with exponential backoff."""
    for attempt in range(RESEND_MAX_ATTEMPTS):
        last_attempt = attempt >= RESEND_MAX_ATTEMPTS - 1
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if last_attempt:
                raise
            logger.warning("Resend request failed, retrying", exc_info=exc)
        else:
            if response.status_code not in RETRY_STATUSES or last_attempt:
                return response
            logger.warning("Resend returned %s, retrying", response.status_code)

        delay = _backoff_delay(attempt)
        if delay:
            await asyncio.sleep(delay)

    raise RuntimeError("unreachable")


def _error_detail(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("message") or data.get("error")
    return None


async def send_email(
    to: list[str],
    subject: str,
    html: str,
    *,
    idempotency_key: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> EmailResult:
    """
    Send one message to ``to``.

    Never raises for delivery problems; failures come back as an
    ``EmailResult`` with ``success=False`` and an error string.
    """
    if not to:
        return EmailResult(success=False, error="No recipients")

    if not settings.RESEND_API_KEY:
        logger.info("Email dry run: to=%s subject=%r", ", ".join(to), subject)
        return EmailResult(success=True, dry_run=True)

    from_address = (
        f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM}>"
        if settings.EMAIL_FROM_NAME
        else settings.EMAIL_FROM
    )
    payload: dict[str, object] = {
        "from": from_address,
        "to": to,
        "subject": subject,
        "html": html,
    }
    text = html_to_text(html)
    if text:
        payload["text"] = text

    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key

    async def _send(http: httpx.AsyncClient) -> httpx.Response:
        return await _post_with_retries(
            lambda: http.post(RESEND_SEND_URL, headers=headers, json=payload)
        )

    try:
        if client is not None:
            response = await _send(client)
        else:
            async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as http:
                response = await _send(http)
    except httpx.TimeoutException:
        logger.warning("Resend timeout sending %r", subject)
        return EmailResult(success=False, error="Connection timeout")
    except httpx.HTTPError as exc:
        logger.exception("Resend connection error sending %r", subject)
        return EmailResult(success=False, error=f"Connection error: {exc.__class__.__name__}")

    if 200 <= response.status_code < 300:
        message_id = None
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            message_id = data.get("id")
        logger.info("Email sent: subject=%r message_id=%s", subject, message_id)
        return EmailResult(success=True, message_id=message_id)

    # Idempotency conflict: the message was already accepted.
    if response.status_code == 409:
        logger.info("Email already sent (409): subject=%r", subject)
        return EmailResult(success=True)

    error = f"Resend API error: {response.status_code}"
    detail = _error_detail(response)
    if detail:
        error = f"{error} ({detail})"
    logger.warning("Resend error sending %r: %s", subject, error)
    return EmailResult(success=False, error=error)

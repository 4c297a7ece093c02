"""Tests for the Resend email adapter."""

import json

import httpx
import pytest

from app.core.config import settings
from app.services import email_service
from app.services.email_service import html_to_text, send_email


@pytest.fixture
def resend_key(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test_key")
    monkeypatch.setattr(email_service, "RESEND_RETRY_BASE_DELAY", 0)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_no_recipients_is_an_error():
    result = await send_email([], "Subject", "<p>Body</p>")

    assert result.success is False
    assert result.error == "No recipients"


@pytest.mark.asyncio
async def test_missing_api_key_is_a_dry_run(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "")

    result = await send_email(["ops@example.com"], "Subject", "<p>Body</p>")

    assert result.success is True
    assert result.dry_run is True


@pytest.mark.asyncio
async def test_successful_send_returns_message_id(resend_key):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["headers"] = request.headers
        captured["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "msg_123"})

    async with _client(handler) as client:
        result = await send_email(
            ["ops@example.com"],
            "Contract expired",
            "<p>Hello<br>world</p>",
            idempotency_key="expiry-2026-06-15",
            client=client,
        )

    assert result.success is True
    assert result.message_id == "msg_123"
    assert captured["headers"]["Authorization"] == "Bearer re_test_key"
    assert captured["headers"]["Idempotency-Key"] == "expiry-2026-06-15"
    assert captured["payload"]["to"] == ["ops@example.com"]
    assert captured["payload"]["from"] == "Contract Registry <noreply@example.com>"
    assert captured["payload"]["text"] == "Hello\nworld"


@pytest.mark.asyncio
async def test_server_errors_are_retried(resend_key):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"id": "msg_retry"})

    async with _client(handler) as client:
        result = await send_email(["ops@example.com"], "Subject", "<p>Body</p>", client=client)

    assert len(calls) == 3
    assert result.success is True
    assert result.message_id == "msg_retry"


@pytest.mark.asyncio
async def test_client_error_reports_detail(resend_key):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"message": "Invalid `to` field"})

    async with _client(handler) as client:
        result = await send_email(["not-an-email"], "Subject", "<p>Body</p>", client=client)

    assert result.success is False
    assert result.error == "Resend API error: 422 (Invalid `to` field)"


@pytest.mark.asyncio
async def test_idempotency_conflict_counts_as_sent(resend_key):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "duplicate"})

    async with _client(handler) as client:
        result = await send_email(["ops@example.com"], "Subject", "<p>Body</p>", client=client)

    assert result.success is True


@pytest.mark.asyncio
async def test_timeout_is_reported(resend_key):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async with _client(handler) as client:
        result = await send_email(["ops@example.com"], "Subject", "<p>Body</p>", client=client)

    assert result.success is False
    assert result.error == "Connection timeout"


def test_html_to_text_strips_markup():
    assert html_to_text("<h2>Title</h2><p>A &amp; B</p><style>p{}</style>") == "Title\nA & B"

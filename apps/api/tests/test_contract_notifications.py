"""Tests for lifecycle batch notification emails."""

import uuid
from datetime import date

import pytest

from app.db.enums import ContractStatus, RecipientType
from app.db.models import NotificationRecipient
from app.services import contract_notification_service, email_service, notification_config_service
from app.services.contract_lifecycle_service import StatusChangeResult
from app.services.contract_notification_service import (
    build_subject,
    group_results,
    notify_status_changes,
    render_results_html,
)
from app.services.email_service import EmailResult
from app.services.notification_catalog import NotificationCode


def _result(new_status=ContractStatus.EXPIRED, **overrides) -> StatusChangeResult:
    fields = {
        "contract_id": uuid.uuid4(),
        "protocol_number": "CONTR-2026-0001",
        "title": "Cleaning services",
        "counterparty_name": "Acme",
        "expiry_date": date(2026, 6, 14),
        "previous_status": ContractStatus.ACTIVE,
        "new_status": new_status,
    }
    fields.update(overrides)
    return StatusChangeResult(**fields)


def _route_to_department(db, code, department):
    notification_config_service.seed_notification_configs(db)
    config = notification_config_service.get_config(db, code)
    db.add(
        NotificationRecipient(
            config_id=config.id,
            recipient_type=RecipientType.DEPARTMENT.value,
            department_id=department.id,
        )
    )
    db.commit()


def test_build_subject_names_single_contract():
    assert build_subject("Contract expired", [_result()], "contracts expired") == (
        "Contract expired: CONTR-2026-0001"
    )


def test_build_subject_counts_multiple_contracts():
    results = [_result(), _result(protocol_number=None, title="Fleet lease")]

    assert build_subject("Contract expired", results, "contracts expired") == (
        "Contract expired: 2 contracts expired"
    )


def test_render_escapes_values_and_links_contracts():
    result = _result(title="<script>alert(1)</script>", counterparty_name="Smith & Sons")

    body = render_results_html([result], heading="Contract expired")

    assert "<script>" not in body
    assert "&lt;script&gt;" in body
    assert "Smith &amp; Sons" in body
    assert f"/contracts/{result.contract_id}" in body
    assert "Renewed as" not in body


def test_render_includes_successor_column_for_renewals():
    successor_id = uuid.uuid4()
    result = _result(
        new_status=ContractStatus.RENEWED,
        successor_id=successor_id,
        successor_protocol_number="CONTR-2026-0009",
    )

    body = render_results_html([result], heading="Contract automatically renewed")

    assert "Renewed as" in body
    assert "CONTR-2026-0009" in body
    assert f"/contracts/{successor_id}" in body


def test_group_results_follows_group_order():
    expired = _result(ContractStatus.EXPIRED)
    near = _result(ContractStatus.NEAR_EXPIRY)

    grouped = group_results([expired, near])

    assert [(g.code, members) for g, members in grouped] == [
        (NotificationCode.CONTRACT_NEAR_EXPIRY, [near]),
        (NotificationCode.CONTRACT_EXPIRED, [expired]),
    ]


@pytest.mark.asyncio
async def test_notify_sends_one_email_per_group(db, make_department, monkeypatch):
    department = make_department(email="legal@example.com")
    _route_to_department(db, NotificationCode.CONTRACT_EXPIRED, department)
    sent = []

    async def fake_send(to, subject, html, **kwargs):
        sent.append((to, subject))
        return EmailResult(success=True, message_id="msg_1")

    monkeypatch.setattr(email_service, "send_email", fake_send)

    stats = await notify_status_changes(
        db,
        [_result(ContractStatus.EXPIRED), _result(ContractStatus.NEAR_EXPIRY)],
    )

    assert sent == [(["legal@example.com"], "Contract expired: CONTR-2026-0001")]
    assert stats.as_dict() == {"sent": 1, "skipped": 1, "failed": 0}


@pytest.mark.asyncio
async def test_notify_counts_delivery_failures(db, make_department, monkeypatch):
    department = make_department()
    _route_to_department(db, NotificationCode.CONTRACT_EXPIRED, department)

    async def failing_send(to, subject, html, **kwargs):
        return EmailResult(success=False, error="Resend API error: 500")

    monkeypatch.setattr(email_service, "send_email", failing_send)

    stats = await notify_status_changes(db, [_result(ContractStatus.EXPIRED)])

    assert (stats.sent, stats.skipped, stats.failed) == (0, 0, 1)


@pytest.mark.asyncio
async def test_notify_without_results_sends_nothing(db, monkeypatch):
    async def unexpected_send(*args, **kwargs):
        raise AssertionError("no email expected")

    monkeypatch.setattr(contract_notification_service.email_service, "send_email", unexpected_send)

    stats = await notify_status_changes(db, [])

    assert stats.as_dict() == {"sent": 0, "skipped": 0, "failed": 0}


@pytest.mark.asyncio
async def test_notify_contains_errors_per_group(db, make_department, monkeypatch):
    department = make_department(email="legal@example.com")
    _route_to_department(db, NotificationCode.CONTRACT_EXPIRED, department)
    original = notification_config_service.get_recipients
    sent = []

    def flaky_recipients(db, code):
        if code is NotificationCode.CONTRACT_NEAR_EXPIRY:
            raise RuntimeError("recipient lookup failed")
        return original(db, code)

    async def fake_send(to, subject, html, **kwargs):
        sent.append(subject)
        return EmailResult(success=True)

    monkeypatch.setattr(notification_config_service, "get_recipients", flaky_recipients)
    monkeypatch.setattr(email_service, "send_email", fake_send)

    stats = await notify_status_changes(
        db,
        [_result(ContractStatus.NEAR_EXPIRY), _result(ContractStatus.EXPIRED)],
    )

    assert stats.as_dict() == {"sent": 1, "skipped": 0, "failed": 1}
    assert sent == ["Contract expired: CONTR-2026-0001"]

"""
Notification config service - per-code email settings and recipient resolution.

Rows are seeded from the notification catalog; admins may then disable a
code, override its subject or attach recipients (department, role, user).
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.enums import RecipientType
from app.db.models import Department, NotificationConfig, NotificationRecipient, User
from app.db.soft_delete import not_deleted, select_records
from app.services import notification_catalog
from app.services.notification_catalog import NotificationCode

logger = logging.getLogger(__name__)


def seed_notification_configs(db: Session) -> int:
    """
    Create a config row for every catalog code that has none.

    Tombstoned rows count as present so a deliberately removed code is not
    resurrected on the next startup. Returns the number of rows created.
    """
    existing = set(
        db.scalars(select(NotificationConfig.code)).all()
    )
    created = 0
    for definition in notification_catalog.list_definitions():
        if definition.code in existing:
            continue
        db.add(
            NotificationConfig(
                code=definition.code,
                description=definition.description,
                module=definition.module,
                is_enabled=True,
                email_subject=definition.default_subject,
            )
        )
        created += 1

    if created:
        db.commit()
        logger.info("Seeded %d notification configs", created)
    return created


def get_config(db: Session, code: NotificationCode | str) -> NotificationConfig | None:
    code_value = code.value if isinstance(code, NotificationCode) else code
    return db.scalars(
        select_records(NotificationConfig).where(NotificationConfig.code == code_value)
    ).first()


def is_enabled(db: Session, code: NotificationCode | str) -> bool:
    config = get_config(db, code)
    return bool(config and config.is_enabled)


def resolve_subject(db: Session, code: NotificationCode | str) -> str:
    """Configured subject when set, otherwise the catalog default."""
    config = get_config(db, code)
    if config and config.email_subject and config.email_subject.strip():
        return config.email_subject.strip()
    return notification_catalog.resolve_default_subject(code)


def _recipient_emails(db: Session, recipient: NotificationRecipient) -> list[str]:
    recipient_type = recipient.recipient_type

    if recipient_type == RecipientType.DEPARTMENT.value:
        if recipient.department_id is None:
            return []
        department = db.scalars(
            select_records(Department).where(Department.id == recipient.department_id)
        ).first()
        return [department.email] if department and department.email else []

    if recipient_type == RecipientType.ROLE.value:
        if not recipient.role:
            return []
        users = db.scalars(
            select_records(User)
            .where(User.role == recipient.role, User.is_active.is_(True))
            .order_by(User.email)
        ).all()
        return [user.email for user in users]

    if recipient_type == RecipientType.USER.value:
        if recipient.user_id is None:
            return []
        user = db.scalars(
            select_records(User).where(User.id == recipient.user_id, User.is_active.is_(True))
        ).first()
        return [user.email] if user else []

    logger.warning(
        "Unknown recipient type %s on notification recipient %s",
        recipient_type,
        recipient.id,
    )
    return []


def get_recipients(db: Session, code: NotificationCode | str) -> list[str]:
    """
    Resolve the email addresses for ``code``.

    Empty when the config is missing or disabled. Addresses are de-duplicated
    case-insensitively, keeping first-seen order.
    """
    config = get_config(db, code)
    if config is None or not config.is_enabled:
        return []

    recipients = db.scalars(
        select(NotificationRecipient)
        .where(
            NotificationRecipient.config_id == config.id,
            not_deleted(NotificationRecipient),
        )
        .order_by(NotificationRecipient.sort_order, NotificationRecipient.id)
    ).all()

    emails: list[str] = []
    seen: set[str] = set()
    for recipient in recipients:
        for email in _recipient_emails(db, recipient):
            key = email.strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            emails.append(email.strip())
    return emails

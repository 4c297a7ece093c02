"""Service layer modules."""

from app.services import (  # noqa: F401
    contract_lifecycle_service,
    contract_notification_service,
    contract_service,
    email_service,
    job_service,
    notification_catalog,
    notification_config_service,
)

"""Structured logging helpers for batch jobs and HTTP handlers."""

import logging
from typing import Any

from app.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for worker/CLI entrypoints."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def build_log_context(
    *,
    job_name: str | None = None,
    run_id: str | None = None,
    contract_id: str | None = None,
    actor: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict for ``extra=``; unset keys are omitted."""
    context: dict[str, Any] = {}
    if job_name:
        context["job_name"] = job_name
    if run_id:
        context["run_id"] = str(run_id)
    if contract_id:
        context["contract_id"] = str(contract_id)
    if actor:
        context["actor"] = actor
    return context

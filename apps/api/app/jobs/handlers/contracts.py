"""Contract lifecycle job handlers."""

from __future__ import annotations

import asyncio
import logging

from app.core.structured_logging import build_log_context
from app.jobs.context import JobContext
from app.services import contract_lifecycle_service, contract_notification_service
from app.services.contract_lifecycle_service import LifecycleRunReport

logger = logging.getLogger(__name__)


async def _notify(db, ctx: JobContext, report: LifecycleRunReport) -> dict:
    stats = report.as_dict()
    if ctx.send_email and report.results:
        notification_stats = await contract_notification_service.notify_status_changes(
            db, report.results
        )
        stats["emails"] = notification_stats.as_dict()
    return stats


async def process_contract_expiry_update(db, ctx: JobContext) -> tuple[LifecycleRunReport, dict]:
    """Move contracts into NEAR_EXPIRY / EXPIRED and notify the configured recipients."""
    log_context = build_log_context(job_name=ctx.job_name, run_id=ctx.run_id)
    logger.info("Processing contract expiry update", extra=log_context)

    report = await asyncio.to_thread(
        contract_lifecycle_service.update_expiry_statuses,
        db,
        today=ctx.today,
        should_continue=ctx.should_continue,
    )
    stats = await _notify(db, ctx, report)
    logger.info(
        "Contract expiry update complete (changed=%s failed=%s cancelled=%s)",
        stats["changed"],
        stats["failed"],
        stats["cancelled"],
        extra=log_context,
    )
    return report, stats


async def process_contract_auto_renewal(db, ctx: JobContext) -> tuple[LifecycleRunReport, dict]:
    """Renew eligible auto-renewing contracts and notify the configured recipients."""
    log_context = build_log_context(job_name=ctx.job_name, run_id=ctx.run_id)
    logger.info("Processing contract auto renewal", extra=log_context)

    report = await asyncio.to_thread(
        contract_lifecycle_service.process_automatic_renewals,
        db,
        today=ctx.today,
        should_continue=ctx.should_continue,
    )
    stats = await _notify(db, ctx, report)
    logger.info(
        "Contract auto renewal complete (renewed=%s failed=%s cancelled=%s)",
        stats["changed"],
        stats["failed"],
        stats["cancelled"],
        extra=log_context,
    )
    return report, stats

"""Job handler registry."""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping

from app.db.enums import JobName
from app.jobs.context import JobContext
from app.jobs.handlers import contracts
from app.services.contract_lifecycle_service import LifecycleRunReport

JobHandler = Callable[[object, JobContext], Awaitable[tuple[LifecycleRunReport, dict]]]

JOB_HANDLERS: Mapping[str, JobHandler] = {
    JobName.CONTRACT_EXPIRY_UPDATE.value: contracts.process_contract_expiry_update,
    JobName.CONTRACT_AUTO_RENEWAL.value: contracts.process_contract_auto_renewal,
}


def resolve_job_handler(job_name: str) -> JobHandler:
    handler = JOB_HANDLERS.get(job_name)
    if not handler:
        raise ValueError(f"Unknown job name: {job_name}")
    return handler

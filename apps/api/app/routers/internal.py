"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
Call from an external cron when the in-process scheduler is not running.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.db.enums import JobName, JobTrigger
from app.jobs.runner import JobAlreadyRunningError, execute_job
from app.schemas.job import JobRunRead, ScheduledJobResponse
from app.services import job_service


router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_internal_secret(x_internal_secret: str | None) -> None:
    """Verify the internal secret header."""
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if x_internal_secret != expected:
        raise HTTPException(status_code=403, detail="Invalid internal secret")


async def _run(job_name: JobName) -> ScheduledJobResponse:
    try:
        summary = await execute_job(job_name.value, trigger=JobTrigger.SCHEDULE)
    except JobAlreadyRunningError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return ScheduledJobResponse.model_validate(summary)


@router.post("/contract-expiry", response_model=ScheduledJobResponse)
async def run_contract_expiry(x_internal_secret: str | None = Header(default=None)):
    """
    Daily sweep moving contracts to near-expiry / expired.

    Sends the grouped notification emails when EXPIRY_JOB_SEND_EMAIL is set.
    """
    verify_internal_secret(x_internal_secret)
    return await _run(JobName.CONTRACT_EXPIRY_UPDATE)


@router.post("/contract-renewals", response_model=ScheduledJobResponse)
async def run_contract_renewals(x_internal_secret: str | None = Header(default=None)):
    """Daily sweep creating successors for auto-renewing contracts."""
    verify_internal_secret(x_internal_secret)
    return await _run(JobName.CONTRACT_AUTO_RENEWAL)


@router.get("/job-runs", response_model=list[JobRunRead])
def list_job_runs(
    job_name: str | None = None,
    limit: int = Query(default=20, ge=1, le=200),
    x_internal_secret: str | None = Header(default=None),
    db: Session = Depends(get_db),
):
    """Most recent lifecycle job runs (newest first)."""
    verify_internal_secret(x_internal_secret)
    return job_service.list_runs(db, job_name=job_name, limit=limit)

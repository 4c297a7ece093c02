"""
In-process cron scheduler for the contract lifecycle jobs.

Each registered job carries a cron expression evaluated in UTC. The loop
ticks every ``SCHEDULER_TICK_SECONDS``; a job is due when its expression
matches the current minute and it has not already fired in that minute.

Runs never overlap: every job name has its own ``asyncio.Lock`` and a trigger
that finds the job still running is skipped. Stopping the scheduler sets a
``threading.Event`` that the batch routines poll between records.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable

from app.core.config import Settings, settings
from app.core.cron import CronSchedule, parse_cron
from app.core.structured_logging import build_log_context
from app.db.enums import JobName, JobTrigger
from app.jobs.runner import JobAlreadyRunningError, JobRunSummary, execute_job

logger = logging.getLogger(__name__)

JobRunner = Callable[..., Awaitable[JobRunSummary]]


class SchedulerConfigError(ValueError):
    """Raised at startup when a scheduled job is misconfigured."""


@dataclass(frozen=True)
class ScheduledJobConfig:
    job_name: str
    enabled: bool
    send_email: bool
    cron: CronSchedule | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def load_job_configs(cfg: Settings = settings) -> list[ScheduledJobConfig]:
    """
    Build job configs from settings.

    Raises:
        SchedulerConfigError: an enabled job has an empty or invalid cron.
    """
    entries = (
        (
            JobName.CONTRACT_EXPIRY_UPDATE,
            cfg.EXPIRY_JOB_ENABLED,
            cfg.EXPIRY_JOB_CRON,
            cfg.EXPIRY_JOB_SEND_EMAIL,
        ),
        (
            JobName.CONTRACT_AUTO_RENEWAL,
            cfg.RENEWAL_JOB_ENABLED,
            cfg.RENEWAL_JOB_CRON,
            cfg.RENEWAL_JOB_SEND_EMAIL,
        ),
    )

    configs: list[ScheduledJobConfig] = []
    for job_name, enabled, expression, send_email in entries:
        cron = None
        if enabled:
            if not expression or not expression.strip():
                raise SchedulerConfigError(f"Job {job_name.value} is enabled but has no cron")
            try:
                cron = parse_cron(expression)
            except ValueError as exc:
                raise SchedulerConfigError(
                    f"Invalid cron for job {job_name.value}: {exc}"
                ) from exc
        configs.append(
            ScheduledJobConfig(
                job_name=job_name.value,
                enabled=enabled,
                send_email=send_email,
                cron=cron,
            )
        )
    return configs


class JobScheduler:
    def __init__(
        self,
        *,
        tick_seconds: float | None = None,
        runner: JobRunner = execute_job,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._tick_seconds = tick_seconds or settings.SCHEDULER_TICK_SECONDS
        self._runner = runner
        self._clock = clock
        self._jobs: dict[str, ScheduledJobConfig] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_fired: dict[str, datetime] = {}
        self._stop_event = threading.Event()
        self._loop_task: asyncio.Task | None = None
        self._active: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, config: ScheduledJobConfig) -> None:
        if not config.enabled or config.cron is None:
            self.unregister(config.job_name)
            return
        self._jobs[config.job_name] = config
        logger.info("Registered job %s (%s)", config.job_name, config.cron.expression)

    def unregister(self, job_name: str) -> None:
        if self._jobs.pop(job_name, None) is not None:
            logger.info("Unregistered job %s", job_name)
        self._last_fired.pop(job_name, None)

    def apply_configs(self, configs: list[ScheduledJobConfig]) -> None:
        for config in configs:
            self.register(config)

    @property
    def registered_jobs(self) -> list[str]:
        return sorted(self._jobs)

    def is_running(self, job_name: str) -> bool:
        lock = self._locks.get(job_name)
        return bool(lock and lock.locked())

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def should_continue(self) -> bool:
        return not self._stop_event.is_set()

    def due_jobs(self, now: datetime) -> list[ScheduledJobConfig]:
        minute = now.replace(second=0, microsecond=0)
        return [
            config
            for name, config in sorted(self._jobs.items())
            if config.cron is not None
            and config.cron.matches(minute)
            and self._last_fired.get(name) != minute
        ]

    async def run_job(
        self, job_name: str, trigger: JobTrigger = JobTrigger.SCHEDULE
    ) -> JobRunSummary | None:
        """
        Run ``job_name`` unless it is already running.

        Returns None when skipped or when the run failed; failures are
        recorded in the run ledger and logged, never raised.
        """
        log_context = build_log_context(job_name=job_name)
        lock = self._locks.setdefault(job_name, asyncio.Lock())
        if lock.locked():
            logger.warning("Job %s still running, skipping trigger", job_name, extra=log_context)
            return None

        config = self._jobs.get(job_name)
        async with lock:
            try:
                return await self._runner(
                    job_name,
                    trigger=trigger,
                    send_email=config.send_email if config else None,
                    should_continue=self.should_continue,
                )
            except JobAlreadyRunningError as exc:
                logger.warning("Skipping %s: %s", job_name, exc, extra=log_context)
                return None
            except Exception:
                logger.exception("Scheduled job %s failed", job_name, extra=log_context)
                return None

    async def tick(self, now: datetime | None = None) -> list[str]:
        """Start every due job in the background; returns the started names."""
        now = now or self._clock()
        started: list[str] = []
        for config in self.due_jobs(now):
            self._last_fired[config.job_name] = now.replace(second=0, microsecond=0)
            task = asyncio.create_task(self.run_job(config.job_name))
            self._active.add(task)
            task.add_done_callback(self._active.discard)
            started.append(config.job_name)
        return started

    async def wait_idle(self) -> None:
        """Wait for every job started by ``tick`` to finish."""
        if self._active:
            await asyncio.gather(*list(self._active), return_exceptions=True)

    async def run_forever(self) -> None:
        logger.info(
            "Scheduler started (tick=%ss, jobs=%s)",
            self._tick_seconds,
            ", ".join(self.registered_jobs) or "none",
        )
        while not self._stop_event.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("Scheduler tick failed")
            await asyncio.sleep(self._tick_seconds)

    def start(self) -> None:
        if self._loop_task is not None and not self._loop_task.done():
            return
        self._stop_event.clear()
        self._loop_task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        """Stop ticking and let running jobs finish their current record."""
        self._stop_event.set()
        if self._loop_task is not None:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None
        await self.wait_idle()
        logger.info("Scheduler stopped")


def build_scheduler(cfg: Settings = settings) -> JobScheduler:
    scheduler = JobScheduler(tick_seconds=cfg.SCHEDULER_TICK_SECONDS)
    scheduler.apply_configs(load_job_configs(cfg))
    return scheduler

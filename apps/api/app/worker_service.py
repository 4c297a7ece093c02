"""Service entrypoint for the lifecycle job scheduler."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.structured_logging import configure_logging
from app.scheduler import JobScheduler, build_scheduler

configure_logging()

_scheduler: JobScheduler | None = None


@asynccontextmanager
async def lifespan(_: FastAPI):
    global _scheduler
    # Misconfigured crons fail startup here.
    _scheduler = build_scheduler()
    _scheduler.start()
    try:
        yield
    finally:
        await _scheduler.stop()
        _scheduler = None


app = FastAPI(lifespan=lifespan)


@app.get("/health")
def health() -> dict:
    jobs = _scheduler.registered_jobs if _scheduler else []
    return {"status": "ok", "jobs": jobs}


def main() -> None:
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    host = os.getenv("HOST", "0.0.0.0")
    # nosec B104 - container platforms require binding to all interfaces.
    uvicorn.run("app.worker_service:app", host=host, port=port)


if __name__ == "__main__":
    main()

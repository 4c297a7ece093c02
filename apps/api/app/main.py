"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from app.core.config import settings
from app.core.migrations import ensure_migrations
from app.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and not settings.is_dev:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logging.info("Sentry initialized for error tracking")


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_migrations(engine, settings.AUTO_MIGRATE)

    from app.services import notification_config_service

    with SessionLocal() as db:
        notification_config_service.seed_notification_configs(db)
    yield


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Contract Registry API",
    description="Contract registry lifecycle jobs and notifications",
    version=settings.VERSION,
    docs_url="/docs" if settings.is_dev else None,
    redoc_url="/redoc" if settings.is_dev else None,
    lifespan=lifespan,
)

# ============================================================================
# Routers
# ============================================================================

from app.routers import internal_router  # noqa: E402

# Internal endpoints (cron jobs, protected by X-Internal-Secret)
app.include_router(internal_router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}

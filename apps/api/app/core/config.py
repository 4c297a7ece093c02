"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str
    AUTO_MIGRATE: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Internal scheduled endpoints (cron jobs)
    INTERNAL_SECRET: str = ""  # Secret for /internal/scheduled/* endpoints

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Public URL used for links in notification emails
    APP_BASE_URL: str = "http://localhost:8000"

    # Outbound email (Resend). Empty key = dry run, emails are only logged.
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "noreply@example.com"
    EMAIL_FROM_NAME: str = "Contract Registry"

    # Contract defaults
    CONTRACT_ALERT_DAYS_DEFAULT: int = 60
    CONTRACT_RENEWAL_TERM_DAYS_DEFAULT: int = 365

    # Scheduled jobs (5-field cron, evaluated in UTC)
    EXPIRY_JOB_ENABLED: bool = True
    EXPIRY_JOB_CRON: str = "0 6 * * *"
    EXPIRY_JOB_SEND_EMAIL: bool = True

    RENEWAL_JOB_ENABLED: bool = True
    RENEWAL_JOB_CRON: str = "0 7 * * *"
    RENEWAL_JOB_SEND_EMAIL: bool = True

    SCHEDULER_TICK_SECONDS: int = 30
    # A RUNNING job_runs row older than this no longer blocks a new run
    # (the process that owned it is assumed dead).
    JOB_RUN_STALE_MINUTES: int = 120

    @property
    def app_base_url(self) -> str:
        """Base URL without trailing slash."""
        return self.APP_BASE_URL.rstrip("/")

    @property
    def is_dev(self) -> bool:
        return self.ENV == "dev"


settings = Settings()

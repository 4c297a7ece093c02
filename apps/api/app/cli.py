"""CLI tools for contract registry administration."""

from datetime import date
from functools import partial
from uuid import UUID

import click

from app.core.async_utils import run_async
from app.core.request_audit_context import actor_context
from app.core.structured_logging import configure_logging
from app.db.enums import JobName, JobTrigger
from app.db.session import SessionLocal
from app.jobs.runner import JobAlreadyRunningError, execute_job
from app.services import contract_service, job_service, notification_config_service


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level: str | None):
    """Contract registry CLI tools."""
    configure_logging(log_level)


@cli.command("seed-notifications")
def seed_notifications():
    """Create missing notification configs from the catalog."""
    with SessionLocal() as db:
        created = notification_config_service.seed_notification_configs(db)
    click.echo(f"Seeded {created} notification config(s)")


@cli.command("run-job")
@click.argument("name", type=click.Choice([job.value for job in JobName]))
@click.option("--no-email", is_flag=True, help="Skip notification emails")
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Evaluate as of this date (YYYY-MM-DD) instead of today (UTC)",
)
def run_job(name: str, no_email: bool, today):
    """
    Run a lifecycle job once and record it in the job run ledger.

    Example:
        python -m app.cli run-job contract_expiry_update --no-email
    """
    as_of: date | None = today.date() if today else None
    try:
        summary = run_async(
            partial(
                execute_job,
                name,
                trigger=JobTrigger.MANUAL,
                send_email=False if no_email else None,
                today=as_of,
            )
        )
    except JobAlreadyRunningError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)
    click.echo(
        f"{summary.job_name}: {summary.status} "
        f"(changed={summary.records_changed}, failed={summary.failure_count})"
    )
    if summary.failure_count:
        raise SystemExit(1)


@cli.command("delete-contract")
@click.argument("contract_id", type=click.UUID)
@click.option("--actor", default=None, help="Identity recorded as deleted_by (default: System)")
def delete_contract(contract_id: UUID, actor: str | None):
    """Soft-delete a contract (the row is kept as a tombstone)."""
    with actor_context(actor) as resolved_actor, SessionLocal() as db:
        deleted = contract_service.delete_contract(db, contract_id)
    if not deleted:
        click.echo(f"Contract {contract_id} not found or already deleted")
        raise SystemExit(1)
    click.echo(f"Contract {contract_id} deleted by {resolved_actor}")


@cli.command("list-job-runs")
@click.option("--job-name", default=None, help="Filter by job name")
@click.option("--limit", default=20, show_default=True, help="Number of runs to show")
def list_job_runs(job_name: str | None, limit: int):
    """Show the most recent job runs."""
    with SessionLocal() as db:
        runs = job_service.list_runs(db, job_name=job_name, limit=limit)
        if not runs:
            click.echo("No job runs recorded")
            return
        for run in runs:
            finished = run.finished_at.isoformat(timespec="seconds") if run.finished_at else "-"
            click.echo(
                f"{run.started_at.isoformat(timespec='seconds')}  {run.job_name:<24} "
                f"{run.trigger:<8} {run.status:<9} changed={run.records_changed} "
                f"failed={run.failure_count} finished={finished}"
            )


if __name__ == "__main__":
    cli()

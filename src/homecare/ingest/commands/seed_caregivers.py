"""Seed the caregivers collection with three sample employees."""

import typer

from homecare.ingest.commands.base import (
    DRY_RUN_HELP,
    LOG_LEVEL_HELP,
    command_session,
    exit_for,
    get_store,
    load_settings,
    report,
    run_app,
)
from homecare.ingest.services.seed import seed_caregivers

PROG = "homecare-seed-caregivers"

app = typer.Typer(add_completion=False, help="Upsert three sample caregivers (EMP001-EMP003)")


@app.command()
def seed_caregivers_command(
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
) -> None:
    with command_session(log_level):
        run = seed_caregivers(get_store(load_settings(dry_run)))
        report(run)
        exit_for(run)


def main(argv: list[str] | None = None) -> int:
    return run_app(app, argv, PROG)


if __name__ == "__main__":
    raise SystemExit(main())

"""
Import caregivers from the staff workbook.

Usage:
    homecare-import-caregivers [file_path] [sheet_name]

Caregivers are keyed by employee id, so re-importing the same workbook
updates the existing documents instead of adding duplicates.
"""

import typer

from homecare.core.store import MAX_BATCH_SIZE
from homecare.ingest.commands.base import (
    BATCH_SIZE_HELP,
    DRY_RUN_HELP,
    LOG_LEVEL_HELP,
    SHEET_NAME_HELP,
    run_app,
    run_import,
)
from homecare.ingest.models import WriteMode
from homecare.ingest.services.pipeline import CAREGIVERS_FROM_EXCEL

PROG = "homecare-import-caregivers"
DEFAULT_SOURCE = "童庭居家員工資料.xlsx"

app = typer.Typer(add_completion=False, help="Upsert caregivers from the staff workbook")


@app.command()
def import_caregivers_command(
    source: str | None = typer.Argument(
        None, help=f"Input file (default: <data dir>/{DEFAULT_SOURCE})"
    ),
    sheet_name: str | None = typer.Argument(None, help=SHEET_NAME_HELP),
    mode: WriteMode = typer.Option(CAREGIVERS_FROM_EXCEL.mode, "--mode", help="Write mode"),
    reset: bool = typer.Option(
        CAREGIVERS_FROM_EXCEL.reset,
        "--reset/--no-reset",
        help="Delete existing caregivers before writing",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, max=MAX_BATCH_SIZE, help=BATCH_SIZE_HELP
    ),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
) -> None:
    run_import(
        CAREGIVERS_FROM_EXCEL,
        source,
        default_source=DEFAULT_SOURCE,
        sheet_name=sheet_name,
        mode=mode,
        reset=reset,
        dry_run=dry_run,
        batch_size=batch_size,
        log_level=log_level,
    )


def main(argv: list[str] | None = None) -> int:
    return run_app(app, argv, PROG)


if __name__ == "__main__":
    raise SystemExit(main())

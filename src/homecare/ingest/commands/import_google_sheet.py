"""
Import cases from a shared Google Sheet.

Usage:
    homecare-import-google-sheet "https://docs.google.com/spreadsheets/d/<id>/edit#gid=0"

The sheet must be shared as "Anyone with the link can view"; it is
downloaded as a CSV export of the worksheet named by the gid.
"""

import typer

from homecare.core.store import MAX_BATCH_SIZE
from homecare.ingest.commands.base import (
    BATCH_SIZE_HELP,
    DRY_RUN_HELP,
    LOG_LEVEL_HELP,
    run_app,
    run_import,
)
from homecare.ingest.models import WriteMode
from homecare.ingest.services.decoder import SourceFormat
from homecare.ingest.services.pipeline import CASES_FROM_GOOGLE_SHEETS
from homecare.ingest.services.sources import fetch_google_sheet_csv

PROG = "homecare-import-google-sheet"

app = typer.Typer(add_completion=False, help="Append cases from a shared Google Sheet")


@app.command()
def import_google_sheet_command(
    url: str = typer.Argument(..., help="Sheet URL as copied from the browser"),
    mode: WriteMode = typer.Option(CASES_FROM_GOOGLE_SHEETS.mode, "--mode", help="Write mode"),
    reset: bool = typer.Option(
        CASES_FROM_GOOGLE_SHEETS.reset,
        "--reset/--no-reset",
        help="Delete existing cases before writing",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, max=MAX_BATCH_SIZE, help=BATCH_SIZE_HELP
    ),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
) -> None:
    run_import(
        CASES_FROM_GOOGLE_SHEETS,
        url,
        mode=mode,
        reset=reset,
        dry_run=dry_run,
        batch_size=batch_size,
        log_level=log_level,
        load_source=fetch_google_sheet_csv,
        source_format=SourceFormat.CSV,
    )


def main(argv: list[str] | None = None) -> int:
    return run_app(app, argv, PROG)


if __name__ == "__main__":
    raise SystemExit(main())

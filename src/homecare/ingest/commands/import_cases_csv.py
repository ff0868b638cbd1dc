"""
Import cases from a UTF-8 CSV export.

Usage:
    homecare-import-cases-csv [file_path]
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
from homecare.ingest.services.pipeline import CASES_FROM_CSV

PROG = "homecare-import-cases-csv"
DEFAULT_SOURCE = "cases.csv"

app = typer.Typer(add_completion=False, help="Append cases from a CSV file")


@app.command()
def import_cases_csv_command(
    source: str | None = typer.Argument(
        None, help=f"Input file (default: <data dir>/{DEFAULT_SOURCE})"
    ),
    mode: WriteMode = typer.Option(CASES_FROM_CSV.mode, "--mode", help="Write mode"),
    reset: bool = typer.Option(
        CASES_FROM_CSV.reset, "--reset/--no-reset", help="Delete existing cases before writing"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, max=MAX_BATCH_SIZE, help=BATCH_SIZE_HELP
    ),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
) -> None:
    run_import(
        CASES_FROM_CSV,
        source,
        default_source=DEFAULT_SOURCE,
        mode=mode,
        reset=reset,
        dry_run=dry_run,
        batch_size=batch_size,
        log_level=log_level,
        source_format=SourceFormat.CSV,
    )


def main(argv: list[str] | None = None) -> int:
    return run_app(app, argv, PROG)


if __name__ == "__main__":
    raise SystemExit(main())

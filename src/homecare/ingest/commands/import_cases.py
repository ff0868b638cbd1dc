"""
Full refresh of the cases collection from the case workbook.

Usage:
    homecare-import-cases [file_path] [sheet_name]

Existing cases are deleted first; each row is then written on its own so a
rejected row is reported without stopping the rest.
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
from homecare.ingest.services.pipeline import CASES_FROM_EXCEL

PROG = "homecare-import-cases"
DEFAULT_SOURCE = "cases.xlsx"

app = typer.Typer(add_completion=False, help="Replace all cases with the rows of an Excel workbook")


@app.command()
def import_cases_command(
    source: str | None = typer.Argument(
        None, help=f"Input file (default: <data dir>/{DEFAULT_SOURCE})"
    ),
    sheet_name: str | None = typer.Argument(None, help=SHEET_NAME_HELP),
    mode: WriteMode = typer.Option(CASES_FROM_EXCEL.mode, "--mode", help="Write mode"),
    reset: bool = typer.Option(
        CASES_FROM_EXCEL.reset, "--reset/--no-reset", help="Delete existing cases before writing"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, max=MAX_BATCH_SIZE, help=BATCH_SIZE_HELP
    ),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
) -> None:
    run_import(
        CASES_FROM_EXCEL,
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

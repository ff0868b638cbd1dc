"""
Shared command-line plumbing for the import scripts.

Each script module builds a single-command typer app and exposes
`main(argv=None) -> int` as its console entry point. Store settings are
loaded before any source is read, so missing credentials fail fast.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from loguru import logger

from config.logging import setup_logging
from config.settings import DEFAULT_DATA_DIR, StoreSettings, load_store_settings
from homecare.core.store import MAX_BATCH_SIZE, DocumentStore, MemoryStore
from homecare.core.store.firestore import FirestoreStore
from homecare.ingest.errors import CommitError, DecodeError, HomecareImportError, NormalizationError
from homecare.ingest.models import ImportRun, RunStatus, WriteMode
from homecare.ingest.services.decoder import SourceFormat
from homecare.ingest.services.pipeline import ImportPipeline, ImportProfile
from homecare.ingest.services.sources import read_source_file

EXIT_OK = 0
EXIT_FAILURE = 1

DRY_RUN_HELP = "Run against an in-memory store; no credentials needed, nothing is written"
BATCH_SIZE_HELP = f"Operations per atomic batch (default: IMPORT_BATCH_SIZE or {MAX_BATCH_SIZE})"
LOG_LEVEL_HELP = "Console log level (default: LOG_LEVEL or INFO)"
SHEET_NAME_HELP = "Worksheet to import (default: first sheet)"


def run_app(app: typer.Typer, argv: list[str] | None, prog_name: str) -> int:
    """Invoke a typer app and turn its exit into a process return code."""
    try:
        app(args=argv, prog_name=prog_name)
    except SystemExit as e:
        if e.code is None:
            return EXIT_OK
        return e.code if isinstance(e.code, int) else EXIT_FAILURE
    return EXIT_OK


def echo_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)


@contextmanager
def command_session(log_level: str | None) -> Iterator[None]:
    """Configure logging, then map import errors to exit code 1."""
    setup_logging(log_level)
    try:
        yield
    except typer.Exit:
        raise
    except HomecareImportError as e:
        logger.error(f"{type(e).__name__}: {e}")
        echo_error(str(e))
        raise typer.Exit(code=EXIT_FAILURE) from e
    except Exception as e:
        logger.exception("Unexpected error")
        echo_error(f"{type(e).__name__}: {e}")
        raise typer.Exit(code=EXIT_FAILURE) from e


def load_settings(dry_run: bool) -> StoreSettings | None:
    """Store settings, or None for a dry run."""
    if dry_run:
        return None
    return load_store_settings()


def get_store(settings: StoreSettings | None) -> DocumentStore:
    if settings is None:
        logger.warning("Dry run: writing to an in-memory store, nothing is persisted")
        return MemoryStore()
    return FirestoreStore.from_settings(settings)


def resolve_batch_size(batch_size: int | None, settings: StoreSettings | None) -> int:
    if batch_size:
        return batch_size
    return settings.batch_size if settings else MAX_BATCH_SIZE


def report(run: ImportRun) -> None:
    summary = run.summary()
    typer.echo(f"Import into '{summary['collection']}' {summary['status']}")
    typer.echo(f"  Rows read: {summary['total_rows']}")
    typer.echo(f"  Written: {summary['success']}")
    typer.echo(f"  Skipped: {summary['skipped']}")
    typer.echo(f"  Failed: {summary['failed']}")
    typer.echo(f"  Remaining: {summary['remaining']}")
    if summary["deleted"]:
        typer.echo(f"  Deleted before import: {summary['deleted']}")
    if run.duration is not None:
        typer.echo(f"  Duration: {run.duration.total_seconds():.1f}s")
    for failure in run.failures:
        typer.echo(
            f"  - row {failure.row_number} ({failure.stage}): "
            f"{failure.error_type}: {failure.error_message}"
        )


def exit_for(run: ImportRun) -> None:
    """Exit with code 1 when the run failed; partial runs still succeed."""
    if run.status == RunStatus.FAILED:
        raise typer.Exit(code=EXIT_FAILURE)


def run_import(
    profile: ImportProfile,
    source: str | None,
    *,
    default_source: str | None = None,
    sheet_name: str | None = None,
    mode: WriteMode | None = None,
    reset: bool | None = None,
    dry_run: bool = False,
    batch_size: int | None = None,
    log_level: str | None = None,
    load_source: Callable[[str], bytes] | None = None,
    source_format: SourceFormat | None = None,
) -> None:
    """
    Import one tabular source with a profile and print the run report.

    Args:
        profile: Import variant to run
        source: Input location; `default_source` under the data directory when empty
        load_source: Turns the location into bytes (default: read a local file)

    Raises:
        typer.Exit: With code 1 when the source cannot be read or the run failed
    """
    with command_session(log_level):
        settings = load_settings(dry_run)
        if not source:
            data_dir = settings.data_dir if settings else DEFAULT_DATA_DIR
            source = str(Path(data_dir) / default_source)
        data = (load_source or read_source_file)(source)
        store = get_store(settings)

        pipeline = ImportPipeline(
            store,
            profile,
            batch_size=resolve_batch_size(batch_size, settings),
            mode=mode,
            reset=reset,
        )
        try:
            run = pipeline.process(
                data,
                sheet_name=sheet_name,
                source_name=source,
                source_format=source_format,
            )
        except (DecodeError, NormalizationError, CommitError) as e:
            echo_error(str(e))
            report(pipeline.run)
            raise typer.Exit(code=EXIT_FAILURE) from e

        report(run)
        exit_for(run)

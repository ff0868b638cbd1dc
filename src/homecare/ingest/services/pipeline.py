"""
End-to-end import pipeline.

Decoding -> Normalizing -> [Resetting] -> Writing, run sequentially for one
source into one collection. Every row is normalized and assembled before
the collection is reset or anything is written, so a bad source never
leaves a half-cleared collection behind.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger

from homecare.core.models import utc_now
from homecare.core.store import MAX_BATCH_SIZE, DocumentStore
from homecare.ingest.errors import NormalizationError
from homecare.ingest.mappings import CAREGIVER, CASE, EntityType
from homecare.ingest.models import (
    STAGE_NORMALIZE,
    ImportRun,
    KeyStrategy,
    RowFailure,
    RunStatus,
    WriteMode,
)
from homecare.ingest.services.assembler import Assembled, Skipped, assemble_record
from homecare.ingest.services.decoder import DecodedTable, RawRow, SourceFormat, decode
from homecare.ingest.services.reset import clear_collection
from homecare.ingest.services.standardizer import normalize_row
from homecare.ingest.services.writer import BatchWriter, collapse_duplicate_keys


@dataclass(frozen=True)
class ImportProfile:
    """How one kind of source is imported."""

    name: str
    entity: EntityType
    mode: WriteMode
    key_strategy: KeyStrategy
    reset: bool = False
    description: str = ""


CASES_FROM_EXCEL = ImportProfile(
    name="cases-excel",
    entity=CASE,
    mode=WriteMode.ISOLATED,
    key_strategy=KeyStrategy.AUTO,
    reset=True,
    description="Full refresh of the cases collection from the case workbook",
)

CASES_FROM_CSV = ImportProfile(
    name="cases-csv",
    entity=CASE,
    mode=WriteMode.BATCHED,
    key_strategy=KeyStrategy.AUTO,
    description="Append cases from a CSV export",
)

CASES_FROM_GOOGLE_SHEETS = ImportProfile(
    name="cases-google-sheets",
    entity=CASE,
    mode=WriteMode.BATCHED,
    key_strategy=KeyStrategy.AUTO,
    description="Append cases from a shared Google Sheet",
)

CAREGIVERS_FROM_EXCEL = ImportProfile(
    name="caregivers-excel",
    entity=CAREGIVER,
    mode=WriteMode.BATCHED,
    key_strategy=KeyStrategy.NATURAL,
    description="Upsert caregivers keyed by employee id",
)

PROFILES = {
    profile.name: profile
    for profile in (CASES_FROM_EXCEL, CASES_FROM_CSV, CASES_FROM_GOOGLE_SHEETS, CAREGIVERS_FROM_EXCEL)
}


class ImportPipeline:
    """
    Runs one import for a profile.

    Mode and reset can be overridden per run; everything else comes from
    the profile. The ImportRun of the last call is kept on `self.run` so
    callers can report partial progress after an exception.
    """

    def __init__(
        self,
        store: DocumentStore,
        profile: ImportProfile,
        batch_size: int = MAX_BATCH_SIZE,
        mode: WriteMode | None = None,
        reset: bool | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.profile = profile
        self.batch_size = batch_size
        self.mode = mode or profile.mode
        self.reset = profile.reset if reset is None else reset
        self.clock = clock
        self.run: ImportRun | None = None

    @property
    def collection(self) -> str:
        return self.profile.entity.collection

    def _start_run(self, source_name: str) -> ImportRun:
        self.run = ImportRun(
            source=source_name,
            collection=self.collection,
            mode=self.mode,
            started_at=self.clock(),
        )
        logger.info(
            f"Starting {self.profile.name} import from {source_name or '<memory>'} "
            f"into '{self.collection}' ({self.mode}, reset={self.reset})"
        )
        return self.run

    def process(
        self,
        data: bytes,
        sheet_name: str | None = None,
        source_name: str = "",
        source_format: SourceFormat | None = None,
    ) -> ImportRun:
        """
        Decode and import a source.

        Args:
            data: Raw file contents (xlsx or CSV)
            sheet_name: Worksheet to read (xlsx only)
            source_name: File path or URL, for reporting
            source_format: Force the decoder instead of detecting the format

        Returns:
            The finished ImportRun (COMPLETED, PARTIAL or FAILED)

        Raises:
            DecodeError, NormalizationError, CommitError: after the run is marked FAILED
        """
        run = self._start_run(source_name)
        try:
            run.status = RunStatus.DECODING
            table = decode(data, sheet_name=sheet_name, source_format=source_format)
            self._process_table(table)
        except Exception as e:
            self._fail(e)
            raise
        return run

    def process_rows(self, rows: Sequence[Mapping[str, Any]], source_name: str = "") -> ImportRun:
        """Import rows that are already decoded (label -> value mappings)."""
        run = self._start_run(source_name)
        table = DecodedTable(
            headers=sorted({label for row in rows for label in row}),
            rows=[RawRow(number=index, cells=dict(row)) for index, row in enumerate(rows, start=1)],
        )
        try:
            self._process_table(table)
        except Exception as e:
            self._fail(e)
            raise
        return run

    def _fail(self, error: Exception) -> None:
        run = self.run
        run.status = RunStatus.FAILED
        run.error_message = f"{type(error).__name__}: {error}"
        run.completed_at = self.clock()
        logger.error(
            f"Import from {run.source or '<memory>'} failed: {error} "
            f"({run.success_count} written, {run.remaining} remaining)"
        )

    def _process_table(self, table: DecodedTable) -> None:
        run = self.run
        run.total_rows = len(table)

        if not table.rows:
            logger.warning(f"No data rows found in {run.source or 'source'}; nothing to import")
            self._finish()
            return

        run.status = RunStatus.NORMALIZING
        records = self._assemble(table)
        if self.profile.key_strategy == KeyStrategy.NATURAL:
            records, superseded = collapse_duplicate_keys(records)
            for item in superseded:
                logger.warning(
                    f"Row {item.row_number}: duplicate key '{item.key}' superseded by a later row"
                )
            run.skip_count += len(superseded)
        run.assembled = len(records)

        if not records:
            logger.warning("No records to write; collection left untouched")
            self._finish()
            return

        if self.reset:
            run.status = RunStatus.RESETTING
            run.deleted_count = clear_collection(self.store, self.collection, self.batch_size)

        run.status = RunStatus.WRITING
        writer = BatchWriter(
            self.store,
            self.collection,
            mode=self.mode,
            key_strategy=self.profile.key_strategy,
            batch_size=self.batch_size,
            run=run,
        )
        writer.write(records)
        self._finish()

    def _assemble(self, table: DecodedTable) -> list[Assembled]:
        run = self.run
        entity = self.profile.entity
        now = self.clock()
        today = now.astimezone().date()

        records = []
        for row in table.rows:
            try:
                normalized = normalize_row(row.cells, entity, today, row_number=row.number)
            except NormalizationError as e:
                # A batch cannot silently leave a row out
                if self.mode == WriteMode.BATCHED:
                    raise
                logger.warning(f"Row {row.number} not imported: {e}")
                run.record_failure(
                    RowFailure(
                        row_number=row.number,
                        stage=STAGE_NORMALIZE,
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                )
                continue

            result = assemble_record(normalized, entity, now, row_number=row.number)
            if isinstance(result, Skipped):
                run.skip_count += 1
                logger.debug(f"Row {row.number} skipped: {result.reason}")
                continue
            records.append(result)

        logger.info(
            f"Assembled {len(records)} records from {len(table)} rows "
            f"({run.skip_count} skipped, {run.error_count} failed)"
        )
        return records

    def _finish(self) -> None:
        run = self.run
        if run.error_count == 0:
            run.status = RunStatus.COMPLETED
        elif run.success_count > 0:
            run.status = RunStatus.PARTIAL
        else:
            run.status = RunStatus.FAILED
            run.error_message = run.error_message or "No rows could be imported"
        run.completed_at = self.clock()

        logger.info(
            f"Import into '{run.collection}' {run.status.lower()}: "
            f"{run.success_count} written, {run.skip_count} skipped, "
            f"{run.error_count} failed, {run.remaining} remaining"
        )

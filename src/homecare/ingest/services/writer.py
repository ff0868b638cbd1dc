"""
Batch writer.

Commits assembled records to the document store, either in fixed-size
atomic batches (stop on the first rejected batch) or one document at a time
(tally per-record failures and keep going). Batches are committed strictly
in order; there is no rollback of batches that already landed.
"""

from collections.abc import Sequence

from loguru import logger

from homecare.core.store import MAX_BATCH_SIZE, DocumentStore, WriteOperation
from homecare.ingest.errors import CommitError
from homecare.ingest.models import STAGE_WRITE, ImportRun, KeyStrategy, RowFailure, WriteMode
from homecare.ingest.services.assembler import Assembled


def chunked(items: Sequence, size: int) -> list[Sequence]:
    """Split items into consecutive chunks of at most size elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [items[start : start + size] for start in range(0, len(items), size)]


def collapse_duplicate_keys(items: Sequence[Assembled]) -> tuple[list[Assembled], list[Assembled]]:
    """
    Keep only the last record for each natural key.

    Returns:
        (kept, superseded); records without a key are always kept
    """
    last_index = {item.key: index for index, item in enumerate(items) if item.key}
    kept, superseded = [], []
    for index, item in enumerate(items):
        if item.key and last_index[item.key] != index:
            superseded.append(item)
        else:
            kept.append(item)
    return kept, superseded


class BatchWriter:
    """
    Writes assembled records into one collection.

    Counters are accumulated on the ImportRun so a caller still has them
    after a CommitError.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        mode: WriteMode = WriteMode.BATCHED,
        key_strategy: KeyStrategy = KeyStrategy.AUTO,
        batch_size: int = MAX_BATCH_SIZE,
        run: ImportRun | None = None,
    ):
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}")
        self.store = store
        self.collection = collection
        self.mode = mode
        self.key_strategy = key_strategy
        self.batch_size = batch_size
        self.run = run or ImportRun(source="", collection=collection, mode=mode)

    def _doc_id(self, item: Assembled) -> str | None:
        if self.key_strategy == KeyStrategy.NATURAL and item.key:
            return item.key
        return None

    def write(self, items: Sequence[Assembled]) -> ImportRun:
        """
        Commit all records.

        Raises:
            CommitError: Batched mode only, when a batch is rejected
        """
        if not items:
            logger.info(f"Nothing to write to {self.collection}")
            return self.run

        self.run.assembled = len(items)
        if self.mode == WriteMode.ISOLATED:
            self._write_isolated(items)
        else:
            self._write_batched(items)
        return self.run

    def _write_batched(self, items: Sequence[Assembled]) -> None:
        batches = chunked(items, self.batch_size)
        total = len(batches)

        for index, chunk in enumerate(batches, start=1):
            operations = [
                WriteOperation.set(
                    self.collection,
                    self._doc_id(item) or self.store.new_id(self.collection),
                    item.record,
                )
                for item in chunk
            ]
            try:
                self.store.commit_batch(operations)
            except CommitError as e:
                written = self.run.success_count
                remaining = len(items) - written
                logger.error(
                    f"Batch {index}/{total} rejected: {e} "
                    f"({written} written, {remaining} remaining)"
                )
                raise CommitError(
                    f"Batch {index}/{total} rejected after {written} records were written: {e}",
                    written=written,
                    remaining=remaining,
                ) from e

            self.run.commits += 1
            self.run.success_count += len(chunk)
            logger.info(
                f"Committed batch {index}/{total} "
                f"({self.run.success_count}/{len(items)} records)"
            )

    def _write_isolated(self, items: Sequence[Assembled]) -> None:
        for item in items:
            doc_id = self._doc_id(item)
            try:
                if doc_id:
                    self.store.set_document(self.collection, doc_id, item.record)
                else:
                    doc_id = self.store.create_document(self.collection, item.record)
            except Exception as e:
                logger.exception(f"Failed to write '{item.name}' (row {item.row_number})")
                self.run.record_failure(
                    RowFailure(
                        row_number=item.row_number,
                        stage=STAGE_WRITE,
                        error_type=type(e).__name__,
                        error_message=str(e),
                        key=doc_id,
                        name=item.name,
                    )
                )
                continue

            self.run.success_count += 1
            logger.debug(f"Wrote '{item.name}' as {self.collection}/{doc_id}")

        logger.info(
            f"Isolated write finished: {self.run.success_count} written, "
            f"{self.run.write_failures} failed"
        )

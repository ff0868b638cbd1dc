"""
Tests for the batch writer.
"""

import pytest

from homecare.core.store import MemoryStore
from homecare.ingest.errors import CommitError
from homecare.ingest.models import STAGE_WRITE, KeyStrategy, WriteMode
from homecare.ingest.services.assembler import Assembled
from homecare.ingest.services.writer import BatchWriter, chunked, collapse_duplicate_keys

pytestmark = pytest.mark.unit


def make_items(count: int, key_prefix: str | None = None) -> list[Assembled]:
    return [
        Assembled(
            row_number=i,
            record={"name": f"n{i}"},
            key=f"{key_prefix}{i}" if key_prefix else None,
        )
        for i in range(1, count + 1)
    ]


class RejectingBatchStore(MemoryStore):
    """Rejects the n-th batch commit."""

    def __init__(self, reject_commit: int):
        super().__init__()
        self.reject_commit = reject_commit
        self.attempts = 0

    def commit_batch(self, operations):
        self.attempts += 1
        if self.attempts == self.reject_commit:
            raise CommitError("quota exceeded")
        super().commit_batch(operations)


class RejectingDocumentStore(MemoryStore):
    """Rejects single-document writes for the given names."""

    def __init__(self, reject_names: set[str]):
        super().__init__()
        self.reject_names = reject_names

    def create_document(self, collection, data, doc_id=None):
        if data.get("name") in self.reject_names:
            raise CommitError(f"Invalid resource field value in {data['name']}")
        return super().create_document(collection, data, doc_id)


class TestChunking:
    """Test the chunking helper."""

    def test_chunked(self):
        """Test splitting into fixed-size chunks."""
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
        assert chunked([], 500) == []

    def test_invalid_size(self):
        """Test that a chunk size below 1 is refused."""
        with pytest.raises(ValueError):
            chunked([1], 0)


class TestBatchedMode:
    """Fixed-size atomic batches."""

    def test_exactly_500_records_is_one_commit(self, memory_store):
        """Test a full batch is one commit."""
        writer = BatchWriter(memory_store, "cases")

        run = writer.write(make_items(500))

        assert memory_store.commits == [500]
        assert run.success_count == 500
        assert run.commits == 1

    def test_501_records_is_two_commits(self, memory_store):
        """Test one record over the limit opens a second batch."""
        writer = BatchWriter(memory_store, "cases")

        writer.write(make_items(501))

        assert memory_store.commits == [500, 1]
        assert len(memory_store.list_documents("cases")) == 501

    def test_custom_batch_size(self, memory_store):
        """Test a smaller batch size."""
        BatchWriter(memory_store, "cases", batch_size=2).write(make_items(5))

        assert memory_store.commits == [2, 2, 1]

    def test_batch_size_limit(self, memory_store):
        """Test that batches above the store limit are refused."""
        with pytest.raises(ValueError):
            BatchWriter(memory_store, "cases", batch_size=501)

    def test_rejected_batch_stops_the_run(self):
        """Test that a rejected batch aborts with written and remaining counts."""
        store = RejectingBatchStore(reject_commit=2)
        writer = BatchWriter(store, "cases", batch_size=2)

        with pytest.raises(CommitError) as exc_info:
            writer.write(make_items(5))

        assert exc_info.value.written == 2
        assert exc_info.value.remaining == 3
        assert "Batch 2/3" in str(exc_info.value)
        # Batch 1 is not rolled back, batch 3 never ran
        assert len(store.list_documents("cases")) == 2
        assert store.attempts == 2
        assert writer.run.success_count == 2
        assert writer.run.remaining == 3

    def test_natural_keys_upsert(self, memory_store):
        """Test natural keys overwrite existing documents."""
        memory_store.set_document("caregivers", "E1", {"name": "old"})
        writer = BatchWriter(memory_store, "caregivers", key_strategy=KeyStrategy.NATURAL)

        writer.write(make_items(2, key_prefix="E"))

        assert memory_store.get_document("caregivers", "E1") == {"name": "n1"}
        assert sorted(doc_id for doc_id, _ in memory_store.list_documents("caregivers")) == ["E1", "E2"]

    def test_auto_strategy_ignores_natural_keys(self, memory_store):
        """Test that auto keys ignore record keys."""
        BatchWriter(memory_store, "cases").write(make_items(2, key_prefix="E"))

        assert memory_store.get_document("cases", "E1") is None
        assert len(memory_store.list_documents("cases")) == 2

    def test_nothing_to_write(self, memory_store):
        """Test an empty input."""
        run = BatchWriter(memory_store, "cases").write([])

        assert run.success_count == 0
        assert memory_store.commits == []


class TestIsolatedMode:
    """One write per record; failures are tallied."""

    def test_failure_in_row_5_of_10(self):
        """Test a failed row is recorded and the rest still written."""
        store = RejectingDocumentStore(reject_names={"n5"})
        writer = BatchWriter(store, "cases", mode=WriteMode.ISOLATED)

        run = writer.write(make_items(10))

        assert run.success_count == 9
        assert run.error_count == 1
        assert len(store.list_documents("cases")) == 9
        # Rows after the failure were still written
        names = {data["name"] for _, data in store.list_documents("cases")}
        assert {"n6", "n7", "n8", "n9", "n10"} <= names

        failure = run.failures[0]
        assert failure.row_number == 5
        assert failure.stage == STAGE_WRITE
        assert failure.error_type == "CommitError"
        assert failure.name == "n5"

    def test_isolated_mode_never_batches(self, memory_store):
        """Test isolated writes go one document at a time."""
        BatchWriter(memory_store, "cases", mode=WriteMode.ISOLATED).write(make_items(3))

        assert memory_store.commits == []
        assert len(memory_store.list_documents("cases")) == 3

    def test_isolated_natural_keys_upsert(self, memory_store):
        """Test natural keys in isolated mode."""
        writer = BatchWriter(
            memory_store, "caregivers", mode=WriteMode.ISOLATED, key_strategy=KeyStrategy.NATURAL
        )

        writer.write(make_items(2, key_prefix="E"))

        assert memory_store.get_document("caregivers", "E2") == {"name": "n2"}


class TestDuplicateKeys:
    """Test collapsing of repeated natural keys."""

    def test_last_record_wins(self):
        """Test the later row wins for a repeated key."""
        items = [
            Assembled(row_number=2, record={"name": "a"}, key="E1"),
            Assembled(row_number=3, record={"name": "b"}, key=None),
            Assembled(row_number=4, record={"name": "c"}, key="E1"),
        ]

        kept, superseded = collapse_duplicate_keys(items)

        assert [item.row_number for item in kept] == [3, 4]
        assert [item.row_number for item in superseded] == [2]

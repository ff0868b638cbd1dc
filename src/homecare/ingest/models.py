from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any


class RunStatus(StrEnum):
    PENDING = "PENDING"
    DECODING = "DECODING"
    NORMALIZING = "NORMALIZING"
    RESETTING = "RESETTING"
    WRITING = "WRITING"
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.PARTIAL, RunStatus.FAILED)


class WriteMode(StrEnum):
    """How assembled records are committed."""

    # Fixed-size atomic batches; first rejected batch aborts the run
    BATCHED = "batched"
    # One write per record; failures are tallied and the run continues
    ISOLATED = "isolated"


class KeyStrategy(StrEnum):
    """How document ids are chosen."""

    # Natural key (e.g. employeeId) with upsert-overwrite; auto id when blank
    NATURAL = "natural"
    # Always a fresh auto-generated id
    AUTO = "auto"


STAGE_NORMALIZE = "normalize"
STAGE_WRITE = "write"


@dataclass
class RowFailure:
    """A row that could not be normalized or written."""

    row_number: int | None
    stage: str
    error_type: str
    error_message: str
    key: str | None = None
    name: str | None = None


@dataclass
class ImportRun:
    """
    Tracks a single import run.

    One run = one decoded source written into one collection. Holds the
    counters reported at the end of the run, including after a failure.
    """

    source: str
    collection: str
    mode: WriteMode
    status: RunStatus = RunStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None

    # Statistics
    total_rows: int = 0
    assembled: int = 0
    success_count: int = 0
    skip_count: int = 0
    error_count: int = 0
    deleted_count: int = 0
    commits: int = 0
    failures: list[RowFailure] = field(default_factory=list)

    # Error tracking
    error_message: str | None = None

    @property
    def remaining(self) -> int:
        """Assembled records not written (and not tallied as failed)."""
        return max(self.assembled - self.success_count - self.write_failures, 0)

    @property
    def write_failures(self) -> int:
        return sum(1 for failure in self.failures if failure.stage == STAGE_WRITE)

    @property
    def duration(self) -> timedelta | None:
        """Calculate processing duration if completed."""
        if self.started_at and self.completed_at:
            return self.completed_at - self.started_at
        return None

    def record_failure(self, failure: RowFailure) -> None:
        self.failures.append(failure)
        self.error_count += 1

    def summary(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "collection": self.collection,
            "mode": str(self.mode),
            "status": str(self.status),
            "total_rows": self.total_rows,
            "success": self.success_count,
            "skipped": self.skip_count,
            "failed": self.error_count,
            "remaining": self.remaining,
            "deleted": self.deleted_count,
            "commits": self.commits,
            "error": self.error_message,
        }

"""
Document store contract.

The import pipeline and the record services talk to the store only through
this protocol. Implementations translate provider failures into CommitError.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

# Maximum number of operations in one atomic batch
MAX_BATCH_SIZE = 500

# (field, operator, value), e.g. ("status", "==", "active")
Filter = tuple[str, str, Any]

FILTER_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "not-in", "array-contains")


class OperationKind(str, Enum):
    SET = "SET"
    DELETE = "DELETE"


@dataclass(frozen=True)
class WriteOperation:
    """One document write inside a batch."""

    kind: OperationKind
    collection: str
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def set(cls, collection: str, doc_id: str, data: dict[str, Any]) -> "WriteOperation":
        return cls(OperationKind.SET, collection, doc_id, data)

    @classmethod
    def delete(cls, collection: str, doc_id: str) -> "WriteOperation":
        return cls(OperationKind.DELETE, collection, doc_id)


class DocumentStore(Protocol):
    """Protocol for document stores."""

    def new_id(self, collection: str) -> str:
        """Reserve an auto-generated document id without writing."""
        ...

    def create_document(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> str:
        """Create a document (auto id when doc_id is None) and return its id."""
        ...

    def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Overwrite-upsert a document."""
        ...

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    def update_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing document."""
        ...

    def delete_document(self, collection: str, doc_id: str) -> None: ...

    def list_documents(self, collection: str) -> list[tuple[str, dict[str, Any]]]: ...

    def query_documents(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]: ...

    def commit_batch(self, operations: Sequence[WriteOperation]) -> None:
        """
        Apply all operations atomically.

        Raises:
            CommitError: If the store rejects the batch (nothing is applied)
        """
        ...


def check_batch_size(operations: Sequence[WriteOperation]) -> None:
    """Reject batches the store would refuse."""
    if len(operations) > MAX_BATCH_SIZE:
        raise ValueError(
            f"Batch of {len(operations)} operations exceeds the limit of {MAX_BATCH_SIZE}"
        )

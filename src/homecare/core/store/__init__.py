"""Document store contract and implementations."""

from .base import (
    MAX_BATCH_SIZE,
    DocumentStore,
    Filter,
    OperationKind,
    WriteOperation,
)
from .memory import MemoryStore

__all__ = [
    "MAX_BATCH_SIZE",
    "DocumentStore",
    "Filter",
    "MemoryStore",
    "OperationKind",
    "WriteOperation",
]

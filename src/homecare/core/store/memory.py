"""
In-process document store.

Implements the DocumentStore contract over plain dicts. Used for dry runs and
tests. Value validation mirrors what the remote store refuses, so documents
that would be rejected in production are rejected here too.
"""

import math
import operator
import uuid
from collections.abc import Iterable, Sequence
from copy import deepcopy
from datetime import date, datetime
from typing import Any

from loguru import logger

from homecare.core.store.base import (
    Filter,
    OperationKind,
    WriteOperation,
    check_batch_size,
)
from homecare.core.utils.safecast import fits_int64
from homecare.ingest.errors import CommitError

_COMPARATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
    "not-in": lambda value, options: value not in options,
    "array-contains": lambda value, item: isinstance(value, list) and item in value,
}


def find_invalid_value(value: Any, path: str = "") -> str | None:
    """Return the path of the first value the store cannot hold, or None."""
    if value is None or isinstance(value, (str, bool, datetime, date)):
        return None
    if isinstance(value, int):
        return None if fits_int64(value) else path or "<root>"
    if isinstance(value, float):
        return None if math.isfinite(value) else path or "<root>"
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str) or not key:
                return f"{path}.{key!r}" if path else repr(key)
            found = find_invalid_value(item, f"{path}.{key}" if path else key)
            if found:
                return found
        return None
    if isinstance(value, list):
        for index, item in enumerate(value):
            found = find_invalid_value(item, f"{path}[{index}]")
            if found:
                return found
        return None
    return path or "<root>"


class MemoryStore:
    """Dict-backed DocumentStore."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        # Sizes of committed batches, in commit order
        self.commits: list[int] = []

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(name, {})

    def _validate(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        if not doc_id or "/" in doc_id:
            raise CommitError(f"Invalid document id {doc_id!r} in {collection}")
        bad_path = find_invalid_value(data)
        if bad_path:
            raise CommitError(
                f"Invalid resource field value at '{bad_path}' in {collection}/{doc_id}"
            )

    def new_id(self, collection: str) -> str:
        return uuid.uuid4().hex[:20]

    def create_document(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> str:
        doc_id = doc_id or self.new_id(collection)
        self.set_document(collection, doc_id, data)
        return doc_id

    def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._validate(collection, doc_id, data)
        self._collection(collection)[doc_id] = deepcopy(data)

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        data = self._collection(collection).get(doc_id)
        return deepcopy(data) if data is not None else None

    def update_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise CommitError(f"No document to update: {collection}/{doc_id}")
        self._validate(collection, doc_id, data)
        docs[doc_id].update(deepcopy(data))

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)

    def list_documents(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        return [(doc_id, deepcopy(data)) for doc_id, data in self._collection(collection).items()]

    def query_documents(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        results = self.list_documents(collection)
        for field_name, op, expected in filters:
            compare = _COMPARATORS.get(op)
            if compare is None:
                raise ValueError(f"Unsupported filter operator: {op}")
            results = [
                (doc_id, data)
                for doc_id, data in results
                if field_name in data and compare(data[field_name], expected)
            ]
        if order_by:
            # Documents without the ordering field are excluded, as in Firestore
            results = [item for item in results if order_by in item[1]]
            results.sort(key=lambda item: item[1][order_by], reverse=descending)
        if limit is not None:
            results = results[:limit]
        return results

    def commit_batch(self, operations: Sequence[WriteOperation]) -> None:
        check_batch_size(operations)
        # Validate everything first so a rejected batch applies nothing
        for op in operations:
            if op.kind == OperationKind.SET:
                self._validate(op.collection, op.doc_id, op.data)
        for op in operations:
            if op.kind == OperationKind.SET:
                self._collection(op.collection)[op.doc_id] = deepcopy(op.data)
            else:
                self._collection(op.collection).pop(op.doc_id, None)
        self.commits.append(len(operations))
        logger.debug(f"MemoryStore committed {len(operations)} operations")

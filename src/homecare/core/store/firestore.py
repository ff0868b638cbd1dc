"""
Cloud Firestore implementation of the DocumentStore contract.

Uses the firebase-admin SDK with a service account. Provider errors are
translated to CommitError so callers never see google.api_core types.
"""

import base64
import binascii
import json
from collections.abc import Iterable, Sequence
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore import Query
from google.cloud.firestore_v1.base_query import FieldFilter
from loguru import logger

from config.settings import StoreSettings
from homecare.core.store.base import (
    Filter,
    OperationKind,
    WriteOperation,
    check_batch_size,
)
from homecare.ingest.errors import CommitError, ConfigurationError

APP_NAME = "homecare-import"

# Errors raised by the client library while serializing or sending a write
_WRITE_ERRORS = (google_exceptions.GoogleAPIError, ValueError, TypeError)


def initialize_app(settings: StoreSettings) -> firebase_admin.App:
    """
    Return the firebase app for these settings, initializing it once.

    Raises:
        ConfigurationError: If the service account cannot be loaded
    """
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass

    try:
        if settings.credentials_path:
            cred = credentials.Certificate(settings.credentials_path)
        else:
            data = json.loads(base64.b64decode(settings.credentials_b64).decode("utf-8"))
            cred = credentials.Certificate(data)
    except (OSError, ValueError, binascii.Error) as e:
        raise ConfigurationError(
            f"Could not load Firebase service account: {e.__class__.__name__}: {e}"
        ) from e

    logger.info(f"Initializing Firebase app for project {settings.project_id}")
    return firebase_admin.initialize_app(
        cred, {"projectId": settings.project_id}, name=APP_NAME
    )


class FirestoreStore:
    """DocumentStore backed by Cloud Firestore."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> "FirestoreStore":
        app = initialize_app(settings)
        return cls(firestore.client(app))

    def _ref(self, collection: str, doc_id: str):
        return self.client.collection(collection).document(doc_id)

    def new_id(self, collection: str) -> str:
        return self.client.collection(collection).document().id

    def create_document(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> str:
        ref = (
            self._ref(collection, doc_id)
            if doc_id
            else self.client.collection(collection).document()
        )
        try:
            ref.create(data)
        except _WRITE_ERRORS as e:
            raise CommitError(f"Create failed for {collection}/{ref.id}: {e}") from e
        return ref.id

    def set_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        try:
            self._ref(collection, doc_id).set(data)
        except _WRITE_ERRORS as e:
            raise CommitError(f"Set failed for {collection}/{doc_id}: {e}") from e

    def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        snapshot = self._ref(collection, doc_id).get()
        return snapshot.to_dict() if snapshot.exists else None

    def update_document(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        try:
            self._ref(collection, doc_id).update(data)
        except _WRITE_ERRORS as e:
            raise CommitError(f"Update failed for {collection}/{doc_id}: {e}") from e

    def delete_document(self, collection: str, doc_id: str) -> None:
        try:
            self._ref(collection, doc_id).delete()
        except google_exceptions.GoogleAPIError as e:
            raise CommitError(f"Delete failed for {collection}/{doc_id}: {e}") from e

    def list_documents(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        return [
            (snapshot.id, snapshot.to_dict())
            for snapshot in self.client.collection(collection).stream()
        ]

    def query_documents(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        query = self.client.collection(collection)
        for field_name, op, value in filters:
            query = query.where(filter=FieldFilter(field_name, op, value))
        if order_by:
            direction = Query.DESCENDING if descending else Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        return [(snapshot.id, snapshot.to_dict()) for snapshot in query.stream()]

    def commit_batch(self, operations: Sequence[WriteOperation]) -> None:
        check_batch_size(operations)
        batch = self.client.batch()
        try:
            # Values are encoded as they are added, so building the batch can fail too
            for op in operations:
                ref = self._ref(op.collection, op.doc_id)
                if op.kind == OperationKind.SET:
                    batch.set(ref, op.data)
                else:
                    batch.delete(ref)
            batch.commit()
        except _WRITE_ERRORS as e:
            raise CommitError(
                f"Batch of {len(operations)} operations rejected: {e}"
            ) from e

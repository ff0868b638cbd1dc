"""
Tests for the Firestore adapter using a mocked client.

No network access: the firestore client is a MagicMock and only the calls
made on it are checked.
"""

import base64
import json
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from config.settings import StoreSettings
from homecare.core.store import WriteOperation
from homecare.core.store.firestore import FirestoreStore, initialize_app
from homecare.ingest.errors import CommitError, ConfigurationError

pytestmark = pytest.mark.unit


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return FirestoreStore(client)


class TestWrites:
    """Test document writes and error translation."""

    def test_set_document(self, store, client):
        """Test set addresses the collection and document."""
        store.set_document("caregivers", "EMP001", {"name": "A"})

        client.collection.assert_called_with("caregivers")
        client.collection.return_value.document.assert_called_with("EMP001")
        client.collection.return_value.document.return_value.set.assert_called_once_with({"name": "A"})

    def test_create_document_with_auto_id(self, store, client):
        """Test create returns the generated id."""
        ref = client.collection.return_value.document.return_value
        ref.id = "auto123"

        doc_id = store.create_document("cases", {"name": "A"})

        assert doc_id == "auto123"
        ref.create.assert_called_once_with({"name": "A"})

    def test_api_error_becomes_commit_error(self, store, client):
        """Test API errors are translated to CommitError."""
        ref = client.collection.return_value.document.return_value
        ref.set.side_effect = google_exceptions.InvalidArgument("Invalid resource field value")

        with pytest.raises(CommitError, match="Set failed for cases/1"):
            store.set_document("cases", "1", {"name": "A"})

    def test_commit_batch(self, store, client):
        """Test sets and deletes are added to one batch."""
        batch = client.batch.return_value

        store.commit_batch(
            [
                WriteOperation.set("cases", "1", {"name": "A"}),
                WriteOperation.delete("cases", "2"),
            ]
        )

        assert batch.set.call_count == 1
        assert batch.delete.call_count == 1
        batch.commit.assert_called_once()

    def test_rejected_batch_becomes_commit_error(self, store, client):
        """Test a rejected commit raises CommitError."""
        client.batch.return_value.commit.side_effect = google_exceptions.ServiceUnavailable("down")

        with pytest.raises(CommitError, match="Batch of 1 operations rejected"):
            store.commit_batch([WriteOperation.set("cases", "1", {"name": "A"})])

    def test_encoding_error_becomes_commit_error(self, store, client):
        """Values the client cannot encode are reported as a rejected batch."""
        batch = client.batch.return_value
        batch.set.side_effect = ValueError("Value out of range: 100000000000000000000")

        with pytest.raises(CommitError, match="Value out of range"):
            store.commit_batch([WriteOperation.set("cases", "1", {"age": 10**20})])
        batch.commit.assert_not_called()


class TestReads:
    """Test reads and query construction."""

    def test_get_missing_document(self, store, client):
        """Test reading a missing document."""
        client.collection.return_value.document.return_value.get.return_value.exists = False

        assert store.get_document("cases", "missing") is None

    def test_query_builds_filters_order_and_limit(self, store, client):
        """Test query construction from filters, ordering and limit."""
        collection = client.collection.return_value
        query = collection.where.return_value
        ordered = query.order_by.return_value
        limited = ordered.limit.return_value
        snapshot = MagicMock(id="1")
        snapshot.to_dict.return_value = {"name": "A"}
        limited.stream.return_value = [snapshot]

        results = store.query_documents(
            "cases", [("status", "==", "active")], order_by="lastVisit", descending=True, limit=5
        )

        assert results == [("1", {"name": "A"})]
        field_filter = collection.where.call_args.kwargs["filter"]
        assert (field_filter.field_path, field_filter.op_string, field_filter.value) == (
            "status",
            "==",
            "active",
        )
        ordered.limit.assert_called_once_with(5)


class TestInitializeApp:
    """Test service-account loading."""

    def test_invalid_service_account_raises_configuration_error(self):
        """Test a non-service-account credential is refused."""
        payload = base64.b64encode(json.dumps({"type": "authorized_user"}).encode()).decode()
        settings = StoreSettings(project_id="demo", credentials_b64=payload)

        with pytest.raises(ConfigurationError, match="Could not load Firebase service account"):
            initialize_app(settings)

    def test_missing_credentials_file_raises_configuration_error(self, tmp_path):
        """Test a missing credentials file."""
        settings = StoreSettings(project_id="demo", credentials_path=str(tmp_path / "missing.json"))

        with pytest.raises(ConfigurationError):
            initialize_app(settings)

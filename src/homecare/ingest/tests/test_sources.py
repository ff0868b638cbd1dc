"""
Tests for source acquisition (local files and Google Sheets export).
"""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from homecare.ingest.errors import SourceUnavailableError
from homecare.ingest.services.sources import (
    RetriesExhaustedError,
    fetch_google_sheet_csv,
    read_source_file,
    retry_on_permission_error,
    to_csv_export_url,
)

pytestmark = pytest.mark.unit

SHEET_URL = "https://docs.google.com/spreadsheets/d/1AbC-d_9/edit#gid=42"


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestExportUrl:
    """Test share URL to CSV export URL conversion."""

    def test_edit_url_with_gid(self):
        """Test converting an edit URL with a fragment gid."""
        assert to_csv_export_url(SHEET_URL) == (
            "https://docs.google.com/spreadsheets/d/1AbC-d_9/export?format=csv&gid=42"
        )

    def test_gid_query_parameter(self):
        """Test a gid given as a query parameter."""
        url = "https://docs.google.com/spreadsheets/d/abc/edit?usp=sharing&gid=7"

        assert to_csv_export_url(url).endswith("gid=7")

    def test_first_sheet_when_gid_missing(self):
        """Test the first worksheet is used without a gid."""
        url = "https://docs.google.com/spreadsheets/d/abc/edit?usp=sharing"

        assert to_csv_export_url(url).endswith("format=csv&gid=0")

    def test_not_a_sheets_url(self):
        """Test that other URLs are refused."""
        with pytest.raises(SourceUnavailableError, match="Not a Google Sheets URL"):
            to_csv_export_url("https://example.com/file.csv")


class TestFetchGoogleSheet:
    """Test downloading a sheet export."""

    def test_returns_csv_bytes(self):
        """Test the export URL is requested and the body returned."""
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(
                200, content="姓名,年齡\n林阿嬤,82\n".encode(), headers={"content-type": "text/csv"}
            )

        data = fetch_google_sheet_csv(SHEET_URL, client=mock_client(handler))

        assert data.decode("utf-8").startswith("姓名,年齡")
        assert requested == ["https://docs.google.com/spreadsheets/d/1AbC-d_9/export?format=csv&gid=42"]

    def test_http_error_mentions_sharing(self):
        """Test HTTP errors explain the sharing setting."""
        client = mock_client(lambda request: httpx.Response(404))

        with pytest.raises(SourceUnavailableError, match="HTTP 404") as exc_info:
            fetch_google_sheet_csv(SHEET_URL, client=client)

        assert "Anyone with the link can view" in str(exc_info.value)

    def test_sign_in_page_is_rejected(self):
        """Test an HTML sign-in page is not taken as CSV."""
        client = mock_client(
            lambda request: httpx.Response(
                200, text="<html>Sign in</html>", headers={"content-type": "text/html; charset=utf-8"}
            )
        )

        with pytest.raises(SourceUnavailableError, match="not publicly readable"):
            fetch_google_sheet_csv(SHEET_URL, client=client)

    def test_transport_error(self):
        """Test network errors become SourceUnavailableError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SourceUnavailableError, match="Could not download"):
            fetch_google_sheet_csv(SHEET_URL, client=mock_client(handler))

    def test_passed_client_is_not_closed(self):
        """Test a caller-owned client stays open."""
        client = mock_client(lambda request: httpx.Response(200, text="a\n1\n"))

        fetch_google_sheet_csv(SHEET_URL, client=client)

        assert not client.is_closed


class TestReadSourceFile:
    """Test reading local source files."""

    def test_reads_bytes(self, tmp_path):
        """Test reading a local file."""
        path = tmp_path / "cases.csv"
        path.write_bytes(b"a,b\n1,2\n")

        assert read_source_file(path) == b"a,b\n1,2\n"

    def test_missing_file(self, tmp_path):
        """Test a missing file."""
        with pytest.raises(SourceUnavailableError, match="not found"):
            read_source_file(tmp_path / "missing.xlsx")

    def test_directory_is_not_a_source(self, tmp_path):
        """Test that a directory is refused."""
        with pytest.raises(SourceUnavailableError):
            read_source_file(tmp_path)


class TestRetryOnPermissionError:
    """Locked files are retried with backoff."""

    @patch("homecare.ingest.services.sources.time.sleep")
    def test_succeeds_after_retries(self, mock_sleep):
        """Test retries with exponential backoff."""
        func = MagicMock(side_effect=[PermissionError("locked"), PermissionError("locked"), b"ok"])
        wrapped = retry_on_permission_error(func, max_retries=3)

        assert wrapped() == b"ok"
        assert func.call_count == 3
        assert [call.args[0] for call in mock_sleep.call_args_list] == [0.5, 1.0]

    @patch("homecare.ingest.services.sources.time.sleep")
    def test_gives_up(self, mock_sleep):
        """Test the retry limit."""
        func = MagicMock(side_effect=PermissionError("locked"))
        wrapped = retry_on_permission_error(func, max_retries=2)

        with pytest.raises(RetriesExhaustedError, match="after 2 retries"):
            wrapped()
        assert mock_sleep.call_count == 1

    def test_other_errors_are_not_retried(self):
        """Test that only permission errors are retried."""
        func = MagicMock(side_effect=ValueError("bad"))
        wrapped = retry_on_permission_error(func)

        with pytest.raises(ValueError):
            wrapped()
        assert func.call_count == 1

    def test_exhausted_retries_are_a_source_error(self):
        """Test the retry error hierarchy."""
        assert issubclass(RetriesExhaustedError, SourceUnavailableError)

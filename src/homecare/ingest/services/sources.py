"""
Source acquisition: local files and shared Google Sheets.

Local files are read with retry logic because spreadsheets are often still
open in Excel (Windows locks them). Shared sheets are downloaded as a CSV
export with httpx.
"""

import functools
import re
import time
from collections.abc import Callable
from pathlib import Path

import httpx
from loguru import logger

from homecare.ingest.errors import SourceUnavailableError

SHEETS_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
SHEETS_GID_PATTERN = re.compile(r"[#&?]gid=(\d+)")
SHEETS_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"

SHARING_HINT = (
    "Make sure the sheet is shared as 'Anyone with the link can view' "
    "and that the URL is correct."
)


class RetriesExhaustedError(SourceUnavailableError):
    """Raised when all retry attempts are exhausted."""

    pass


def retry_on_permission_error(
    func: Callable | None = None,
    *,
    max_retries: int = 5,
    base_delay: float = 0.5,
    backoff_factor: float = 2.0,
    error_types: tuple = (PermissionError,),
) -> Callable:
    """
    Decorator to retry file operations on permission errors.

    On Windows, reading or saving a workbook fails with PermissionError
    while it is open in Excel or being scanned by antivirus.

    Can be used with or without arguments:
        @retry_on_permission_error
        def read(path): ...

        @retry_on_permission_error(max_retries=3)
        def save(workbook, path): ...

    Args:
        func: The function to retry (when used without arguments)
        max_retries: Maximum number of attempts (default: 5)
        base_delay: Initial delay in seconds (default: 0.5)
        backoff_factor: Multiplier for delay after each retry (default: 2.0)
        error_types: Exception types that trigger a retry

    Returns:
        Wrapped function with retry logic
    """

    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            last_error = None
            delay = base_delay

            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except error_types as e:
                    last_error = e
                    if attempt < max_retries - 1:
                        logger.warning(
                            f"File operation failed (attempt {attempt + 1}/{max_retries}): {e}. "
                            f"Retrying in {delay:.1f}s..."
                        )
                        time.sleep(delay)
                        delay *= backoff_factor
                    else:
                        logger.error(f"File operation failed after {max_retries} attempts: {e}")

            raise RetriesExhaustedError(
                f"Operation failed after {max_retries} retries: {last_error}"
            ) from last_error

        return wrapper

    if func is None:
        return decorator
    return decorator(func)


@retry_on_permission_error
def _read_bytes(path: Path) -> bytes:
    return path.read_bytes()


def read_source_file(path: Path | str) -> bytes:
    """
    Read a local source file.

    Raises:
        SourceUnavailableError: If the file does not exist or cannot be read
    """
    path = Path(path)
    if not path.is_file():
        raise SourceUnavailableError(f"Source file not found: {path}")
    try:
        data = _read_bytes(path)
    except OSError as e:
        raise SourceUnavailableError(f"Could not read {path}: {e}") from e
    logger.info(f"Read {len(data):,} bytes from {path}")
    return data


@retry_on_permission_error(max_retries=3)
def save_workbook_with_retry(workbook, path: Path | str) -> None:
    """
    Save an openpyxl Workbook with retry logic.

    Raises:
        RetriesExhaustedError: If all retry attempts fail
    """
    workbook.save(path)


def to_csv_export_url(url: str) -> str:
    """
    Convert a Google Sheets edit/share URL to its CSV export URL.

    The worksheet is taken from the gid fragment/parameter (first sheet when absent).

    Example:
        >>> to_csv_export_url("https://docs.google.com/spreadsheets/d/abc123/edit#gid=42")
        'https://docs.google.com/spreadsheets/d/abc123/export?format=csv&gid=42'

    Raises:
        SourceUnavailableError: If the URL does not contain a spreadsheet id
    """
    match = SHEETS_ID_PATTERN.search(url)
    if not match:
        raise SourceUnavailableError(f"Not a Google Sheets URL: {url}")
    gid_match = SHEETS_GID_PATTERN.search(url)
    gid = gid_match.group(1) if gid_match else "0"
    return SHEETS_EXPORT_URL.format(sheet_id=match.group(1), gid=gid)


def fetch_google_sheet_csv(url: str, client: httpx.Client | None = None) -> bytes:
    """
    Download a shared Google Sheet as CSV bytes.

    Args:
        url: Edit or share URL of the sheet
        client: Optional httpx client (tests pass one with a mock transport)

    Returns:
        CSV bytes (UTF-8)

    Raises:
        SourceUnavailableError: On transport errors, non-2xx responses, or
            when Google returns a sign-in page instead of CSV
    """
    export_url = to_csv_export_url(url)
    logger.info(f"Downloading CSV export: {export_url}")

    owns_client = client is None
    client = client or httpx.Client(timeout=30.0, follow_redirects=True)
    try:
        response = client.get(export_url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise SourceUnavailableError(
            f"Could not read the Google Sheet (HTTP {e.response.status_code}). {SHARING_HINT}"
        ) from e
    except httpx.HTTPError as e:
        raise SourceUnavailableError(f"Could not download the Google Sheet: {e}") from e
    finally:
        if owns_client:
            client.close()

    # Private sheets redirect to an HTML sign-in page with status 200
    content_type = response.headers.get("content-type", "")
    if "text/html" in content_type:
        raise SourceUnavailableError(f"The Google Sheet is not publicly readable. {SHARING_HINT}")

    return response.content

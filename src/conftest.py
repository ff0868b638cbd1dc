"""
Central pytest configuration and shared fixtures.

This file provides common fixtures for all tests in the project.
Fixtures are available to all test files automatically.
"""

import io
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from homecare.core.store import MemoryStore

# Fixed run instant used by pipeline tests (2025-03-01 09:30 UTC)
FIXED_NOW = datetime(2025, 3, 1, 9, 30, tzinfo=UTC)


# ============================================================================
# Path Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def memory_store() -> MemoryStore:
    """Empty in-memory document store."""
    return MemoryStore()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


# ============================================================================
# Source Fixtures
# ============================================================================


def build_workbook_bytes(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    sheet_name: str = "Sheet1",
    extra_sheets: Sequence[str] = (),
) -> bytes:
    """Serialize a single-sheet xlsx workbook to bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(list(headers))
    for row in rows:
        ws.append(list(row))
    for name in extra_sheets:
        wb.create_sheet(name)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_csv_bytes(headers: Sequence[str], rows: Sequence[Sequence[Any]], bom: bool = False) -> bytes:
    """Serialize rows as UTF-8 CSV (values must not contain commas or quotes)."""
    lines = [",".join(headers)]
    lines.extend(",".join("" if value is None else str(value) for value in row) for row in rows)
    text = "\n".join(lines) + "\n"
    return ("\ufeff" + text if bom else text).encode("utf-8")


@pytest.fixture
def workbook_bytes() -> Callable[..., bytes]:
    """Factory fixture: workbook_bytes(headers, rows, sheet_name=...)."""
    return build_workbook_bytes


@pytest.fixture
def csv_bytes() -> Callable[..., bytes]:
    """Factory fixture: csv_bytes(headers, rows, bom=False)."""
    return build_csv_bytes


@pytest.fixture
def case_headers() -> list[str]:
    """Localized headers of the case template."""
    return ["姓名", "性別", "年齡", "電話", "地址", "狀態", "照顧等級", "居服員", "上次訪視", "類別"]


@pytest.fixture
def case_rows() -> list[list[Any]]:
    """Three case rows matching case_headers."""
    return [
        ["林阿嬤", "女", 82, "0912-345-678", "台北市士林區中正路123號", "活躍", "CMS 4級", "張大美", "2025/12/15", "居家照顧"],
        ["王伯伯", "男", 78, "0922-333-444", "台北市北投區大業路456號", "服務中", "CMS 6級", "李小明", "2025/12/10", "居家照顧"],
        ["陳張女士", "女", 88, "0933-555-666", "台北市中山區北安路789號", "待評估", "CMS 5級", "王美麗", "2025/12/01", "居家照顧"],
    ]


# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """
    Configure custom pytest markers.

    This makes the markers available to all tests and allows
    pytest to validate marker usage with --strict-markers.
    """
    config.addinivalue_line("markers", "unit: fast tests of pure functions")
    config.addinivalue_line(
        "markers", "integration: end-to-end pipeline tests against the in-memory store"
    )
    config.addinivalue_line(
        "markers",
        "external_api: tests that call real external services (Firestore, Google Sheets)",
    )

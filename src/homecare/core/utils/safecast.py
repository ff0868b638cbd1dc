import math
from datetime import date, datetime, timedelta
from typing import Any

from dateutil import parser as date_parser

# Day 0 of the spreadsheet date-serial calendar (1900 date system, Lotus leap-year bug included)
EXCEL_EPOCH = date(1899, 12, 30)

TRUTHY_TOKENS = frozenset({"是", "TRUE"})

# Integer range the document store can hold
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def fits_int64(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and value.strip() == "")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def safe_float(value: Any, default: float | None = None) -> float | None:
    """Safely convert value to a finite float. Returns default if conversion fails."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    return result if math.isfinite(result) else default


def safe_int(value: Any, default: int | None = None) -> int | None:
    """
    Safely convert value to int. Returns default if conversion fails.

    Values outside the 64-bit range count as a failed conversion.
    """
    result = safe_float(value)
    if result is None:
        return default
    # Handle floats like 1.0 -> 1
    result = int(result)
    return result if fits_int64(result) else default


def safe_number(value: Any, default: int | float = 0) -> int | float:
    """Convert to float, narrowing integral values to int (1200.0 -> 1200) when they fit in 64 bits."""
    result = safe_float(value)
    if result is None:
        return default
    if result.is_integer() and fits_int64(int(result)):
        return int(result)
    return result


def safe_str(value: Any) -> str:
    """Trimmed string; None becomes empty string."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def is_truthy_token(value: Any) -> bool:
    """True only for boolean True and the recognized yes-tokens."""
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip() in TRUTHY_TOKENS
    return False


def excel_serial_to_date(serial: int | float) -> date:
    """
    Convert a spreadsheet date serial to a calendar date.

    The fractional part (time of day) is discarded.

    Example:
        >>> excel_serial_to_date(44927)
        datetime.date(2023, 1, 1)
    """
    return EXCEL_EPOCH + timedelta(days=math.floor(serial))


def to_date_string(value: Any) -> str:
    """
    Render a date-like cell as an ISO-8601 date.

    Date serials and date objects are converted; strings pass through
    unchanged. Blank values give an empty string.
    """
    if is_blank(value):
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if _is_number(value):
        if not math.isfinite(value):
            return ""
        return excel_serial_to_date(value).isoformat()
    return value if isinstance(value, str) else str(value)


def parse_date(value: Any) -> date | None:
    """Best-effort date parsing for serials, date objects and free-text dates."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if _is_number(value):
        if not math.isfinite(value):
            return None
        return excel_serial_to_date(value)
    try:
        return date_parser.parse(str(value).strip()).date()
    except (ValueError, OverflowError):
        return None


def years_between(start: date, end: date) -> int:
    """Difference in calendar years, as the legacy importer computed ages."""
    return end.year - start.year

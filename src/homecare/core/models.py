"""
Canonical record vocabulary.

Records are stored as plain documents (dicts with camelCase keys); this
module holds the enumerations and timestamp helpers shared by the importer
and the record services.
"""

from datetime import UTC, datetime
from enum import StrEnum


class CaseStatus(StrEnum):
    ACTIVE = "active"
    PENDING = "pending"
    ARCHIVED = "archived"


class CaregiverStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


CASES_COLLECTION = "cases"
CAREGIVERS_COLLECTION = "caregivers"


def utc_now() -> datetime:
    return datetime.now(UTC)


def isoformat_timestamp(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix, e.g. 2025-01-02T03:04:05.678Z."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")

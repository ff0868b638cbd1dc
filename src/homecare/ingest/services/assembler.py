"""
Record assembly.

Builds canonical case/caregiver documents from normalized fields: applies
the blank-row skip rule, stamps server-managed timestamps, resolves the
natural key and runs the deep-clean pass that leaves only plain values the
document store accepts.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from homecare.core.models import isoformat_timestamp
from homecare.ingest.mappings import EntityType

SKIP_BLANK_NAME = "blank name"


@dataclass(frozen=True)
class Skipped:
    row_number: int | None
    reason: str = SKIP_BLANK_NAME


@dataclass(frozen=True)
class Assembled:
    row_number: int | None
    record: dict[str, Any]
    # Document id to write under; None means auto-generated
    key: str | None = None

    @property
    def name(self) -> str:
        return self.record.get("name", "")


AssemblyResult = Skipped | Assembled


def _clean_value(value: Any) -> Any:
    """Cleaned value, or None when the value must be dropped."""
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool | str | int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return _clean_value(float(value))
    if isinstance(value, datetime):
        return isoformat_timestamp(value) if value.tzinfo else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return deep_clean(value)
    if isinstance(value, list | tuple):
        return [item for item in (_clean_value(v) for v in value) if item is not None]
    # Anything else (objects, sentinels) has no document representation
    return None


def deep_clean(data: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively strip values the document store cannot hold.

    None and NaN/infinite floats are removed, enums become their values,
    dates become ISO strings, tuples become lists and unknown objects are
    dropped. Non-string keys are dropped as well.
    """
    cleaned = {}
    for key, value in data.items():
        if not isinstance(key, str) or not key:
            continue
        value = _clean_value(value)
        if value is not None:
            cleaned[key] = value
    return cleaned


def natural_key(record: dict[str, Any], entity: EntityType) -> str | None:
    """Trimmed natural-key value, or None when the entity has none or it is blank."""
    if not entity.natural_key:
        return None
    value = record.get(entity.natural_key)
    if value is None:
        return None
    key = str(value).strip()
    # "/" would address a sub-collection path in the store
    if not key or "/" in key:
        return None
    return key


def assemble_record(
    normalized: dict[str, Any],
    entity: EntityType,
    now: datetime,
    row_number: int | None = None,
) -> AssemblyResult:
    """
    Assemble one normalized row into a document.

    Args:
        normalized: Output of normalize_row
        entity: Entity definition (natural key)
        now: Assembly instant, used for createdAt/updatedAt
        row_number: Source row number, carried through for reporting

    Returns:
        Skipped when the trimmed name is empty, otherwise Assembled
    """
    name = normalized.get("name")
    if name is None or not str(name).strip():
        return Skipped(row_number=row_number)

    timestamp = isoformat_timestamp(now)
    record = {**normalized, "createdAt": timestamp, "updatedAt": timestamp}
    record = deep_clean(record)
    return Assembled(row_number=row_number, record=record, key=natural_key(record, entity))

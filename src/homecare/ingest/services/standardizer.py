"""
Field normalization for the import pipeline.

Pure functions that resolve each canonical field of a raw row through the
alias table and coerce it to its canonical type. No I/O, no store access.

Alias resolution takes the first alias whose cell is *present* (not None),
even when that cell is an empty string. Typed fields (numbers, dates,
statuses) then treat a blank cell as missing and fall back to the field's
default; text fields keep the empty string.
"""

from collections.abc import Mapping
from datetime import date
from typing import Any

from homecare.core.utils.safecast import (
    is_blank,
    is_truthy_token,
    parse_date,
    safe_int,
    safe_number,
    safe_str,
    to_date_string,
    years_between,
)
from homecare.ingest.errors import NormalizationError
from homecare.ingest.mappings import OMIT, EntityType, FieldKind, FieldSpec, StatusRules

AGE_FIELD = "age"
BIRTH_DATE_FIELDS = ("birthDate", "birthday")

_TYPED_KINDS = (FieldKind.INTEGER, FieldKind.NUMBER, FieldKind.DATE, FieldKind.STATUS)


def resolve_alias(cells: Mapping[str, Any], aliases: tuple[str, ...]) -> tuple[str | None, Any]:
    """
    Find the first alias whose value is present.

    Args:
        cells: Raw row (header label -> cell value)
        aliases: Labels in priority order

    Returns:
        (label, value) for the winning alias, or (None, None) if no alias is present
    """
    for alias in aliases:
        value = cells.get(alias)
        if value is not None:
            return alias, value
    return None, None


def default_for(spec: FieldSpec, today: date) -> Any:
    """Default value for an absent field (OMIT when it should be left out)."""
    if spec.default_today:
        return today.isoformat()
    return spec.default


def coerce_value(spec: FieldSpec, raw: Any, status_rules: StatusRules | None = None) -> Any:
    """Coerce a present raw value to the field's canonical type."""
    match spec.kind:
        case FieldKind.INTEGER:
            return max(safe_int(raw, default=0), 0)
        case FieldKind.NUMBER:
            return safe_number(raw, default=0)
        case FieldKind.BOOLEAN:
            return is_truthy_token(raw)
        case FieldKind.DATE:
            return to_date_string(raw)
        case FieldKind.STATUS:
            if status_rules is None:
                raise ValueError(f"Status field '{spec.name}' needs status rules")
            return status_rules.resolve(raw)
        case _:
            return safe_str(raw)


def normalize_field(
    cells: Mapping[str, Any],
    spec: FieldSpec,
    today: date,
    status_rules: StatusRules | None = None,
    row_number: int | None = None,
) -> Any:
    """
    Resolve and coerce one canonical field.

    Returns:
        The normalized value, or OMIT when the field is absent and has no default

    Raises:
        NormalizationError: If a required field is absent and has no default
    """
    label, raw = resolve_alias(cells, spec.aliases)
    if label is not None and not (spec.kind in _TYPED_KINDS and is_blank(raw)):
        return coerce_value(spec, raw, status_rules)

    if spec.has_default:
        return default_for(spec, today)
    if spec.required:
        raise NormalizationError(spec.name, row_number)
    return OMIT


def derive_age(cells: Mapping[str, Any], entity: EntityType, today: date) -> int | None:
    """Age in years from the row's birth date, when the entity has one."""
    for name in BIRTH_DATE_FIELDS:
        try:
            spec = entity.get(name)
        except KeyError:
            continue
        _, raw = resolve_alias(cells, spec.aliases)
        born = parse_date(raw)
        if born is not None:
            return max(years_between(born, today), 0)
    return None


def normalize_row(
    cells: Mapping[str, Any],
    entity: EntityType,
    today: date,
    row_number: int | None = None,
) -> dict[str, Any]:
    """
    Normalize one raw row into canonical fields.

    Args:
        cells: Raw row (header label -> cell value)
        entity: Entity definition holding the alias table and status rules
        today: Run date, used for date defaults and age derivation
        row_number: Spreadsheet row number for error messages

    Returns:
        Canonical field name -> normalized value (absent optional fields omitted)

    Raises:
        NormalizationError: If a required field cannot be resolved
    """
    normalized: dict[str, Any] = {}
    for spec in entity.fields:
        value = normalize_field(cells, spec, today, entity.status_rules, row_number)
        if value is not OMIT:
            normalized[spec.name] = value

    # No usable age in the sheet: fall back to the birth date
    try:
        age_spec = entity.get(AGE_FIELD)
    except KeyError:
        age_spec = None
    if age_spec is not None:
        _, raw_age = resolve_alias(cells, age_spec.aliases)
        if is_blank(raw_age):
            derived = derive_age(cells, entity, today)
            if derived is not None:
                normalized[AGE_FIELD] = derived

    return normalized

"""
Tabular decoder.

Turns the bytes of a spreadsheet (xlsx) or a UTF-8 CSV export into raw rows:
header label -> cell value, with the 1-based spreadsheet row number kept for
error reporting. No normalization happens here.
"""

import codecs
import io
import zipfile
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import polars as pl
from loguru import logger
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from homecare.ingest.errors import DecodeError

XLSX_SIGNATURE = b"PK\x03\x04"
OLE_SIGNATURE = b"\xd0\xcf\x11\xe0"

# Header row is row 1, so data starts at row 2 (matches Excel numbering)
FIRST_DATA_ROW = 2

_ROW_NUMBER_COLUMN = "__row_number__"


class SourceFormat(StrEnum):
    XLSX = "xlsx"
    CSV = "csv"


@dataclass(frozen=True)
class RawRow:
    number: int
    cells: dict[str, Any]

    def get(self, label: str, default: Any = None) -> Any:
        return self.cells.get(label, default)

    def __contains__(self, label: str) -> bool:
        return label in self.cells


@dataclass
class DecodedTable:
    headers: list[str]
    rows: list[RawRow] = field(default_factory=list)
    sheet_name: str | None = None

    def __len__(self) -> int:
        return len(self.rows)


def detect_format(data: bytes) -> SourceFormat:
    """Detect the source format from the leading bytes."""
    if data.startswith(XLSX_SIGNATURE):
        return SourceFormat.XLSX
    if data.startswith(OLE_SIGNATURE):
        raise DecodeError(
            "Legacy .xls workbooks are not supported; save the file as .xlsx or CSV"
        )
    return SourceFormat.CSV


def decode(
    data: bytes,
    sheet_name: str | None = None,
    source_format: SourceFormat | None = None,
) -> DecodedTable:
    """
    Decode tabular bytes into raw rows.

    Args:
        data: File contents
        sheet_name: Worksheet to read (xlsx only); first sheet when omitted
        source_format: Force a format instead of detecting it

    Returns:
        DecodedTable with headers from the first row

    Raises:
        DecodeError: If the bytes are not a readable workbook/CSV or the sheet does not exist
            (CSV input has no sheets, so any sheet name is missing)
    """
    source_format = source_format or detect_format(data)
    if source_format == SourceFormat.XLSX:
        table = decode_xlsx(data, sheet_name)
    else:
        if sheet_name:
            raise DecodeError(f"Sheet '{sheet_name}' not found: CSV input has a single unnamed sheet")
        table = decode_csv(data)
    logger.info(f"Decoded {len(table)} rows ({source_format}, {len(table.headers)} columns)")
    return table


def _header_labels(values: tuple[Any, ...]) -> list[tuple[int, str]]:
    """(column index, label) pairs; blank labels dropped, first duplicate wins."""
    seen = set()
    labels = []
    for index, value in enumerate(values):
        if value is None:
            continue
        label = str(value).strip()
        if not label or label in seen:
            continue
        seen.add(label)
        labels.append((index, label))
    return labels


def decode_xlsx(data: bytes, sheet_name: str | None = None) -> DecodedTable:
    """
    Read one worksheet with openpyxl.

    Cells keep their native types: numbers (including date serials in
    unformatted cells) stay numbers and date-formatted cells arrive as
    datetime objects. Empty cells are omitted from the row.
    """
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, OSError) as e:
        raise DecodeError(f"Not a readable xlsx workbook: {e}") from e

    try:
        target = sheet_name or workbook.sheetnames[0]
        if target not in workbook.sheetnames:
            raise DecodeError(
                f"Sheet '{target}' not found. Available sheets: {', '.join(workbook.sheetnames)}"
            )
        worksheet = workbook[target]

        rows_iter = worksheet.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if header_row is None:
            return DecodedTable(headers=[], sheet_name=target)

        labels = _header_labels(header_row)
        table = DecodedTable(headers=[label for _, label in labels], sheet_name=target)

        for offset, values in enumerate(rows_iter):
            cells = {}
            for index, label in labels:
                value = values[index] if index < len(values) else None
                if value is None:
                    continue
                cells[label] = value
            if all(isinstance(value, str) and not value.strip() for value in cells.values()):
                # Fully blank row
                continue
            table.rows.append(RawRow(number=FIRST_DATA_ROW + offset, cells=cells))
        return table
    finally:
        workbook.close()


def decode_csv(data: bytes) -> DecodedTable:
    """
    Read UTF-8 CSV with polars.

    Every column is read as a string and trimmed. Empty cells are kept as
    empty strings (present but blank). A UTF-8 byte-order mark is stripped.
    """
    data = data.removeprefix(codecs.BOM_UTF8)
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"CSV input is not valid UTF-8: {e}") from e

    if not data.strip():
        return DecodedTable(headers=[])

    try:
        df = pl.read_csv(data, infer_schema=False, truncate_ragged_lines=True)
    except pl.exceptions.NoDataError:
        return DecodedTable(headers=[])
    except pl.exceptions.PolarsError as e:
        raise DecodeError(f"Malformed CSV: {e}") from e

    columns = _csv_columns(df.columns)
    headers = [label for _, label in columns]
    df = (
        df.select([pl.col(name).alias(label) for name, label in columns])
        .with_columns(pl.all().fill_null("").str.strip_chars())
        .with_row_index(_ROW_NUMBER_COLUMN, offset=FIRST_DATA_ROW)
    )
    if headers:
        df = df.filter(~pl.all_horizontal(pl.col(headers) == ""))

    table = DecodedTable(headers=headers)
    for row in df.iter_rows(named=True):
        number = row.pop(_ROW_NUMBER_COLUMN)
        table.rows.append(RawRow(number=number, cells=row))
    return table


def _csv_columns(names: list[str]) -> list[tuple[str, str]]:
    """
    (column name, trimmed label) pairs; blank labels dropped, first duplicate wins.

    polars renames repeated headers to "<label>_duplicated_<n>"; those are
    dropped along with labels that only repeat after trimming.
    """
    seen = set()
    columns = []
    for name in names:
        label = name.strip()
        if not label or "_duplicated_" in name or label in seen:
            continue
        seen.add(label)
        columns.append((name, label))
    return columns

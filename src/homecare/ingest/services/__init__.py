"""
Import pipeline services.

Decoding, normalization and assembly are pure functions over rows; the
writer, reset and pipeline talk to a DocumentStore.
"""

from .assembler import Assembled, Skipped, assemble_record, deep_clean
from .decoder import DecodedTable, RawRow, SourceFormat, decode
from .pipeline import (
    CAREGIVERS_FROM_EXCEL,
    CASES_FROM_CSV,
    CASES_FROM_EXCEL,
    CASES_FROM_GOOGLE_SHEETS,
    PROFILES,
    ImportPipeline,
    ImportProfile,
)
from .reset import clear_collection
from .standardizer import normalize_row, resolve_alias
from .writer import BatchWriter

__all__ = [
    # Profiles
    "CAREGIVERS_FROM_EXCEL",
    "CASES_FROM_CSV",
    "CASES_FROM_EXCEL",
    "CASES_FROM_GOOGLE_SHEETS",
    "PROFILES",
    # Assembly
    "Assembled",
    # Writing
    "BatchWriter",
    # Decoding
    "DecodedTable",
    "ImportPipeline",
    "ImportProfile",
    "RawRow",
    "Skipped",
    "SourceFormat",
    "assemble_record",
    "clear_collection",
    "decode",
    "deep_clean",
    # Normalization
    "normalize_row",
    "resolve_alias",
]

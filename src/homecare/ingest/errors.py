"""Exception types raised by the import pipeline and its collaborators."""


class HomecareImportError(Exception):
    """Base exception for import errors."""

    pass


class ConfigurationError(HomecareImportError):
    """Required store credentials or settings are missing or invalid."""

    pass


class DecodeError(HomecareImportError):
    """The input source is unreadable, malformed or lacks the requested sheet."""

    pass


class SourceUnavailableError(DecodeError):
    """The input source could not be read or downloaded."""

    pass


class NormalizationError(HomecareImportError):
    """A required canonical field has no value and no default."""

    def __init__(self, field: str, row_number: int | None = None):
        self.field = field
        self.row_number = row_number
        where = f" (row {row_number})" if row_number is not None else ""
        super().__init__(f"Required field '{field}' has no value and no default{where}")


class CommitError(HomecareImportError):
    """The store rejected a batch or a single document write."""

    def __init__(self, message: str, written: int = 0, remaining: int = 0):
        super().__init__(message)
        self.written = written
        self.remaining = remaining

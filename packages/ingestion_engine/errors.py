"""Ingestion error taxonomy.

Two severities:

* fatal: ``ArchiveOpenError``, ``NoRecognizedFilesError``, ``PersistenceError``
  abort the whole ingestion call and propagate to the caller;
* recoverable: ``StructuralError`` drops one workbook, ``DateParseError`` /
  ``AmountParseError`` drop one row. Those are collected as diagnostics and
  processing continues.
"""

from typing import Optional


class IngestionError(Exception):
    """Base class for every error raised by the ingestion engine."""


class ArchiveOpenError(IngestionError):
    """The archive is corrupt or the configured password is wrong."""


class NoRecognizedFilesError(IngestionError):
    """The archive opened but holds no usable spreadsheet entry."""


class StructuralError(IngestionError):
    """A workbook cannot be read as a ledger (no sheet, no rows, bad header)."""

    def __init__(self, message: str, missing_columns: Optional[list[str]] = None):
        super().__init__(message)
        self.missing_columns = list(missing_columns or [])


class DateParseError(IngestionError, ValueError):
    """A date cell does not resolve to a calendar date."""


class AmountParseError(IngestionError, ValueError):
    """An amount cell does not resolve to a finite number."""


class InvalidInputError(IngestionError, ValueError):
    """Fingerprint inputs are incomplete.

    The extractor never hands such records to the fingerprint generator, so
    seeing this during ingestion means a programming error.
    """


class InvalidPeriodError(IngestionError, ValueError):
    """A start/end filter bound is not a ``YYYY-MM-DD`` date."""


class PersistenceError(IngestionError):
    """The persistence gateway failed; nothing in the batch is assumed saved.

    ``processed_files`` holds the parse reports produced before the failure so
    callers can show how far parsing got. A timed-out gateway call may still
    commit after this is raised.
    """

    def __init__(self, message: str, processed_files: Optional[list] = None):
        super().__init__(message)
        self.processed_files = list(processed_files or [])

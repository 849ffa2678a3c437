"""
Household Ledger Ingestion Engine

Archive extraction, ledger parsing, fingerprinting and idempotent persistence.
"""

__version__ = "0.1.0"

from .archive import walk_archive
from .errors import (
    AmountParseError,
    ArchiveOpenError,
    DateParseError,
    IngestionError,
    InvalidInputError,
    InvalidPeriodError,
    NoRecognizedFilesError,
    PersistenceError,
    StructuralError,
)
from .excel_parser import parse_ledger_workbook
from .fingerprint import generate_fingerprint, stamp_records
from .models import (
    ExpenseRecord,
    IngestionResult,
    ParsedEntryReport,
    PersistenceResult,
    StampedRecord,
)
from .persistence import ExpenseGateway, InMemoryExpenseGateway, SupabaseExpenseGateway
from .pipeline import ingest_archive, ingest_archive_async

__all__ = [
    "walk_archive",
    "parse_ledger_workbook",
    "generate_fingerprint",
    "stamp_records",
    "ingest_archive",
    "ingest_archive_async",
    "ExpenseGateway",
    "InMemoryExpenseGateway",
    "SupabaseExpenseGateway",
    "ExpenseRecord",
    "StampedRecord",
    "ParsedEntryReport",
    "PersistenceResult",
    "IngestionResult",
    "IngestionError",
    "ArchiveOpenError",
    "NoRecognizedFilesError",
    "StructuralError",
    "DateParseError",
    "AmountParseError",
    "InvalidInputError",
    "InvalidPeriodError",
    "PersistenceError",
]

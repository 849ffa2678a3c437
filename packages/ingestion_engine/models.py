"""Data structures passed between the ingestion stages."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .constants import ERROR_SAMPLE_LIMIT


@dataclass(frozen=True)
class ExpenseRecord:
    """One validated ledger row."""

    date: str  # YYYY-MM-DD
    category: str
    content: str
    payment_method: str
    amount: Decimal  # quantized to 2 fraction digits
    memo: str
    source_row: int  # diagnostic only, not part of the identity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "category": self.category,
            "content": self.content,
            "paymentMethod": self.payment_method,
            "amount": float(self.amount),
            "memo": self.memo,
            "sourceRow": self.source_row,
        }


@dataclass(frozen=True)
class StampedRecord(ExpenseRecord):
    """An ExpenseRecord carrying its dedup fingerprint, ready for persistence."""

    fingerprint: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["fingerprint"] = self.fingerprint
        return data


@dataclass(frozen=True)
class RowError:
    """A data row that could not become an ExpenseRecord."""

    row: int
    message: str

    def __str__(self) -> str:
        return f"행 {self.row}: {self.message}"


@dataclass
class ParsedEntryReport:
    """Outcome of extracting one spreadsheet entry of the archive."""

    file_name: str
    sheet_name: str
    total_rows: int
    records: List[ExpenseRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def valid_rows(self) -> int:
        return len(self.records)

    def summary(self) -> Dict[str, Any]:
        """Date range, total amount and distinct labels of the valid records."""
        dates = [r.date for r in self.records]
        return {
            "dateRange": {"start": min(dates), "end": max(dates)} if dates else None,
            "totalAmount": float(sum((r.amount for r in self.records), Decimal("0"))),
            "categories": list(dict.fromkeys(r.category for r in self.records)),
            "paymentMethods": list(dict.fromkeys(r.payment_method for r in self.records)),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "sheetName": self.sheet_name,
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "errors": list(self.errors),
            "data": [r.to_dict() for r in self.records],
            "summary": self.summary(),
        }


@dataclass(frozen=True)
class PersistenceResult:
    """Counts reported by a persistence gateway for one bulk upsert."""

    total_submitted: int = 0
    new_records: int = 0
    duplicates_ignored: int = 0

    def __post_init__(self):
        if self.total_submitted != self.new_records + self.duplicates_ignored:
            raise ValueError(
                "total_submitted must equal new_records + duplicates_ignored"
            )

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalSubmitted": self.total_submitted,
            "newRecords": self.new_records,
            "duplicatesIgnored": self.duplicates_ignored,
        }


@dataclass
class IngestionResult:
    """Aggregate outcome of one archive ingestion."""

    files_found: int
    processed_files: List[ParsedEntryReport] = field(default_factory=list)
    persistence: Optional[PersistenceResult] = None

    @property
    def total_valid_rows(self) -> int:
        return sum(report.valid_rows for report in self.processed_files)

    @property
    def error_messages(self) -> List[str]:
        return [msg for report in self.processed_files for msg in report.errors]

    @property
    def records(self) -> List[ExpenseRecord]:
        return [r for report in self.processed_files for r in report.records]

    def to_dict(self) -> Dict[str, Any]:
        errors = self.error_messages
        return {
            "filesFound": self.files_found,
            "processedFiles": [report.to_dict() for report in self.processed_files],
            "summary": {
                "totalValidRows": self.total_valid_rows,
                "totalErrors": len(errors),
                "errorMessages": errors[:ERROR_SAMPLE_LIMIT],
            },
            "persistence": self.persistence.to_dict() if self.persistence else None,
        }

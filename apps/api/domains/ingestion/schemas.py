"""Pydantic schemas for the ingestion domain.

Field names on the wire are camelCase, matching what the dashboard front end
already consumes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ExpenseOut(_CamelModel):
    """A validated ledger row."""

    date: str
    category: str = ""
    content: str
    payment_method: str = Field(default="", alias="paymentMethod")
    amount: float
    memo: str = ""
    source_row: int = Field(alias="sourceRow")


class DateRange(_CamelModel):
    start: str
    end: str


class EntrySummary(_CamelModel):
    date_range: Optional[DateRange] = Field(default=None, alias="dateRange")
    total_amount: float = Field(default=0.0, alias="totalAmount")
    categories: list[str] = Field(default_factory=list)
    payment_methods: list[str] = Field(default_factory=list, alias="paymentMethods")


class ProcessedFileOut(_CamelModel):
    """Parse report of one workbook found in the archive."""

    file_name: str = Field(alias="fileName")
    sheet_name: str = Field(alias="sheetName")
    total_rows: int = Field(alias="totalRows")
    valid_rows: int = Field(alias="validRows")
    errors: list[str] = Field(default_factory=list)
    data: list[ExpenseOut] = Field(default_factory=list)
    summary: EntrySummary


class IngestSummary(_CamelModel):
    total_valid_rows: int = Field(alias="totalValidRows")
    total_errors: int = Field(alias="totalErrors")
    error_messages: list[str] = Field(default_factory=list, alias="errorMessages")


class PersistenceOut(_CamelModel):
    total_submitted: int = Field(alias="totalSubmitted")
    new_records: int = Field(alias="newRecords")
    duplicates_ignored: int = Field(alias="duplicatesIgnored")


class ArchiveIngestResponse(_CamelModel):
    """Response from archive ingestion."""

    message: str
    user_id: str = Field(alias="userId")
    uploaded_file: str = Field(alias="uploadedFile")
    files_found: int = Field(alias="filesFound")
    processed_files: list[ProcessedFileOut] = Field(alias="processedFiles")
    summary: IngestSummary
    persistence: Optional[PersistenceOut] = None

"""
Archive ingestion pipeline.

archive bytes -> walk_archive -> parse_ledger_workbook (per entry)
-> stamp_records -> ExpenseGateway.persist (one call per ingestion)

Archive-level and persistence-level failures propagate; workbook-level and
row-level failures are collected into the result and processing continues.
"""

import asyncio
import logging
from datetime import date
from typing import List, Optional, Sequence, Union

from .archive import ArchiveEntry, walk_archive
from .constants import DEFAULT_LAYOUT, LedgerLayout
from .errors import (
    ArchiveOpenError,
    InvalidPeriodError,
    NoRecognizedFilesError,
    PersistenceError,
    StructuralError,
)
from .excel_parser import parse_ledger_workbook
from .fingerprint import stamp_records
from .models import IngestionResult, ParsedEntryReport, PersistenceResult, StampedRecord
from .persistence import ExpenseGateway

logger = logging.getLogger(__name__)

DateBound = Union[str, date, None]


def parse_date_bound(value: DateBound, name: str = "date") -> Optional[date]:
    """Accept a ``YYYY-MM-DD`` string, a date, or nothing."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise InvalidPeriodError(f"{name} must be YYYY-MM-DD, got {value!r}") from e


def parse_entries(
    entries: Sequence[ArchiveEntry],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    password: Optional[str] = None,
    layout: LedgerLayout = DEFAULT_LAYOUT,
) -> List[ParsedEntryReport]:
    """Run the extractor over every entry; a structurally broken workbook is dropped."""
    reports = []
    for name, content in entries:
        try:
            reports.append(
                parse_ledger_workbook(
                    content,
                    file_name=name,
                    start_date=start_date,
                    end_date=end_date,
                    password=password,
                    layout=layout,
                )
            )
        except StructuralError as e:
            logger.warning("Skipping %s: %s", name, e)
    return reports


def persist_batch(
    gateway: ExpenseGateway,
    owner_id: str,
    records: Sequence[StampedRecord],
    reports: List[ParsedEntryReport],
) -> PersistenceResult:
    """Single gateway call; any failure surfaces as PersistenceError carrying ``reports``."""
    try:
        return gateway.persist(owner_id, records)
    except PersistenceError as e:
        raise PersistenceError(str(e), processed_files=reports) from (e.__cause__ or e)
    except Exception as e:
        logger.error("Persistence gateway failed: %s", e)
        raise PersistenceError(
            f"데이터베이스 저장 실패: {e}", processed_files=reports
        ) from e


def _require_entries(entries: Sequence[ArchiveEntry]) -> None:
    # Matching entries existed but none could be extracted
    if not entries:
        raise NoRecognizedFilesError("ZIP 파일 내에 읽을 수 있는 Excel 파일이 없습니다.")


def ingest_archive(
    archive_bytes: bytes,
    owner_id: str,
    gateway: ExpenseGateway,
    password: Optional[str] = None,
    start_date: DateBound = None,
    end_date: DateBound = None,
    layout: LedgerLayout = DEFAULT_LAYOUT,
) -> IngestionResult:
    """
    Ingest a ledger archive for ``owner_id``.

    Raises:
        ArchiveOpenError: corrupt archive or wrong password.
        NoRecognizedFilesError: no spreadsheet entry could be extracted.
        InvalidPeriodError: a filter bound is not ``YYYY-MM-DD``.
        PersistenceError: the gateway failed; ``processed_files`` holds the
            parse reports, nothing is assumed saved.
    """
    start = parse_date_bound(start_date, "start_date")
    end = parse_date_bound(end_date, "end_date")

    entries = walk_archive(archive_bytes, password=password, extension=layout.extension)
    _require_entries(entries)

    reports = parse_entries(entries, start, end, password=password, layout=layout)
    result = IngestionResult(files_found=len(entries), processed_files=reports)

    records = result.records
    if records:
        stamped = stamp_records(records)
        result.persistence = persist_batch(gateway, owner_id, stamped, reports)

    logger.info(
        "Ingested %d files for %s: %d valid rows, %d row errors",
        len(entries),
        owner_id,
        result.total_valid_rows,
        len(result.error_messages),
    )
    return result


async def ingest_archive_async(
    archive_bytes: bytes,
    owner_id: str,
    gateway: ExpenseGateway,
    password: Optional[str] = None,
    start_date: DateBound = None,
    end_date: DateBound = None,
    layout: LedgerLayout = DEFAULT_LAYOUT,
    archive_timeout: Optional[float] = None,
    persist_timeout: Optional[float] = None,
) -> IngestionResult:
    """Async variant of ``ingest_archive`` for the API.

    Archive extraction and the gateway call are the only blocking steps with
    unbounded duration; each runs in a worker thread under its own timeout.
    A timeout stops the wait, not the worker thread: after a persistence
    timeout the upsert may still commit the whole batch later, so a
    PersistenceError raised for a timeout does not mean nothing was saved.
    Resubmitting the same archive is idempotent either way.
    """
    start = parse_date_bound(start_date, "start_date")
    end = parse_date_bound(end_date, "end_date")

    try:
        entries = await asyncio.wait_for(
            asyncio.to_thread(walk_archive, archive_bytes, password, layout.extension),
            timeout=archive_timeout,
        )
    except asyncio.TimeoutError as e:
        raise ArchiveOpenError("ZIP 파일 압축 해제 시간이 초과되었습니다.") from e
    _require_entries(entries)

    reports = await asyncio.to_thread(parse_entries, entries, start, end, password, layout)
    result = IngestionResult(files_found=len(entries), processed_files=reports)

    records = result.records
    if records:
        stamped = stamp_records(records)
        try:
            result.persistence = await asyncio.wait_for(
                asyncio.to_thread(persist_batch, gateway, owner_id, stamped, reports),
                timeout=persist_timeout,
            )
        except asyncio.TimeoutError as e:
            raise PersistenceError(
                "데이터베이스 저장 시간이 초과되었습니다.", processed_files=reports
            ) from e

    return result

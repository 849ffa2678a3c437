import io
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Union

import msoffcrypto
import pandas as pd

from .constants import DEFAULT_LAYOUT, LedgerLayout
from .errors import AmountParseError, DateParseError, StructuralError
from .models import ExpenseRecord, ParsedEntryReport, RowError
from .normalizers import EMPTY, decode_cell, normalize_amount_cell, normalize_date

logger = logging.getLogger(__name__)

# OLE2 Compound Document magic bytes; encrypted Office files use this container
_OLE2_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"

RowOutcome = Union[ExpenseRecord, RowError, None]


def _is_ole2(file_content: bytes) -> bool:
    """Check if file starts with the OLE2 magic bytes (indicates encryption wrapper)."""
    return file_content[:8] == _OLE2_MAGIC


def _open_workbook(file_content: bytes, password: Optional[str]) -> io.BytesIO:
    if not _is_ole2(file_content):
        # Plain .xlsx (ZIP-based OOXML), no decryption needed
        return io.BytesIO(file_content)

    if not password:
        raise StructuralError("암호화된 Excel 파일입니다. 비밀번호가 필요합니다.")

    decrypted_workbook = io.BytesIO()
    try:
        with io.BytesIO(file_content) as f:
            office_file = msoffcrypto.OfficeFile(f)
            office_file.load_key(password=password)
            office_file.decrypt(decrypted_workbook)
    except Exception as e:
        raise StructuralError(f"Excel 파일 복호화에 실패했습니다: {e}") from e
    decrypted_workbook.seek(0)
    return decrypted_workbook


def read_sheets(
    file_content: bytes, password: Optional[str] = None
) -> Dict[str, List[List[Any]]]:
    """Read every worksheet as a list of raw rows, in workbook order."""
    workbook = _open_workbook(file_content, password)
    try:
        frames = pd.read_excel(
            workbook, sheet_name=None, header=None, dtype=object, engine="openpyxl"
        )
    except Exception as e:
        raise StructuralError(f"Excel 파일을 읽을 수 없습니다: {e}") from e

    return {
        str(name): [list(row) for row in frame.itertuples(index=False, name=None)]
        for name, frame in frames.items()
    }


def select_sheet(sheet_names: Sequence[str], layout: LedgerLayout = DEFAULT_LAYOUT) -> str:
    """The designated ledger sheet if present, otherwise the first sheet."""
    if not sheet_names:
        raise StructuralError("워크북에 시트가 없습니다.")
    if layout.sheet_name in sheet_names:
        return layout.sheet_name
    logger.info(
        "Sheet %r not found, falling back to %r", layout.sheet_name, sheet_names[0]
    )
    return sheet_names[0]


def map_columns(header: Sequence[Any], layout: LedgerLayout = DEFAULT_LAYOUT) -> Dict[str, Optional[int]]:
    """Map ledger fields to header positions; raise if a required label is missing."""
    labels = [decode_cell(value).as_text().strip() for value in header]

    missing = [col for col in layout.required_columns if col not in labels]
    if missing:
        raise StructuralError(
            f"필수 컬럼이 누락되었습니다: {', '.join(missing)}", missing_columns=missing
        )

    return {
        "date": labels.index(layout.date_column),
        "category": labels.index(layout.category_column),
        "content": labels.index(layout.content_column),
        "payment_method": labels.index(layout.payment_method_column),
        "amount": labels.index(layout.amount_column),
        "memo": labels.index(layout.memo_column) if layout.memo_column in labels else None,
    }


def _cell(row: Sequence[Any], index: Optional[int]):
    if index is None or index >= len(row):
        return EMPTY
    return decode_cell(row[index])


def process_row(
    row: Optional[Sequence[Any]],
    row_number: int,
    columns: Dict[str, Optional[int]],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> RowOutcome:
    """Turn one data row into an ExpenseRecord, a RowError, or None when skipped.

    Rows without a date are skipped silently, and so are rows outside
    ``[start_date, end_date]``. The range check runs before the amount is
    parsed, so a filtered-out row never reports a bad amount.
    """
    if not row:
        return None
    date_cell = _cell(row, columns["date"])
    if date_cell.is_empty:
        return None

    try:
        expense_date = normalize_date(date_cell)
    except DateParseError as e:
        return RowError(row_number, str(e))

    day = date.fromisoformat(expense_date)
    if start_date and day < start_date:
        return None
    if end_date and day > end_date:
        return None

    try:
        amount = normalize_amount_cell(_cell(row, columns["amount"]))
    except AmountParseError as e:
        return RowError(row_number, str(e))

    content = _cell(row, columns["content"]).as_text()
    if not content.strip():
        return RowError(row_number, "내용이 비어 있습니다.")

    return ExpenseRecord(
        date=expense_date,
        category=_cell(row, columns["category"]).as_text(),
        content=content,
        payment_method=_cell(row, columns["payment_method"]).as_text(),
        amount=amount,
        memo=_cell(row, columns["memo"]).as_text(),
        source_row=row_number,
    )


def parse_ledger_rows(
    rows: Sequence[Sequence[Any]],
    columns: Dict[str, Optional[int]],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Partition data rows (header excluded) into records and row errors."""
    records: List[ExpenseRecord] = []
    errors: List[RowError] = []
    # Data starts on worksheet row 2, right below the header
    for row_number, row in enumerate(rows, start=2):
        outcome = process_row(row, row_number, columns, start_date, end_date)
        if isinstance(outcome, RowError):
            errors.append(outcome)
        elif outcome is not None:
            records.append(outcome)
    return records, errors


def parse_ledger_workbook(
    file_content: bytes,
    file_name: str = "",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    password: Optional[str] = None,
    layout: LedgerLayout = DEFAULT_LAYOUT,
) -> ParsedEntryReport:
    """
    Extract the expense rows of one ledger workbook.

    Raises StructuralError when the bytes are not a workbook, the workbook
    has no sheets, the chosen sheet is empty, or a required column is
    missing. Row-level problems never raise; they are reported in
    ``ParsedEntryReport.errors`` and the remaining rows are still read.
    """
    sheets = read_sheets(file_content, password=password)
    sheet_name = select_sheet(list(sheets), layout)
    rows = sheets[sheet_name]

    if not rows:
        raise StructuralError("시트에 데이터가 없습니다.")

    columns = map_columns(rows[0], layout)
    data_rows = rows[1:]
    records, errors = parse_ledger_rows(data_rows, columns, start_date, end_date)

    return ParsedEntryReport(
        file_name=file_name,
        sheet_name=sheet_name,
        total_rows=len(data_rows),
        records=records,
        errors=[str(error) for error in errors],
    )

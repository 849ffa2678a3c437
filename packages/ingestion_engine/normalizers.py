"""
Cell decoding and date/amount normalization.

Spreadsheet cells arrive loosely typed (numbers, strings, datetimes, NaN for
blanks). ``decode_cell`` turns each one into an explicit ``Cell`` so the
normalizers below branch on a closed set of kinds instead of relying on
implicit coercion.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

import pandas as pd

from .constants import SERIAL_DATE_UNIX_EPOCH
from .errors import AmountParseError, DateParseError
from .fingerprint import normalize_amount

_UNIX_EPOCH = datetime(1970, 1, 1)

# Everything but digits, '.' and '-' is dropped from text amounts
_NON_NUMERIC = re.compile(r"[^\d.\-]")
# Longest leading number of the stripped text ("1,234원" -> "1234")
_LEADING_NUMBER = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")

_KOREAN_DATE = re.compile(r"^\s*(\d{4})\s*년\s*(\d{1,2})\s*월\s*(\d{1,2})\s*일?")
_DOTTED_DATE = re.compile(r"^\s*(\d{4})[./](\d{1,2})[./](\d{1,2})\.?\s*$")


class CellKind(Enum):
    EMPTY = "empty"
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"
    OTHER = "other"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Any = None

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    def as_text(self) -> str:
        """Free-text rendering for category/content/payment method/memo columns."""
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.TEXT:
            return self.value
        if self.kind is CellKind.NUMBER:
            if isinstance(self.value, float) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        if self.kind is CellKind.DATE:
            return self.value.isoformat()
        return str(self.value)


EMPTY = Cell(CellKind.EMPTY)


def decode_cell(value: Any) -> Cell:
    """Classify a raw cell value read from a worksheet."""
    if value is None:
        return EMPTY
    if isinstance(value, bool):
        return Cell(CellKind.OTHER, value)
    if isinstance(value, (datetime, date)):
        if value is pd.NaT:
            return EMPTY
        day = value.date() if isinstance(value, datetime) else value
        return Cell(CellKind.DATE, day)
    if isinstance(value, (int, float, Decimal)):
        if isinstance(value, float) and math.isnan(value):
            return EMPTY
        return Cell(CellKind.NUMBER, value)
    if isinstance(value, str):
        if not value.strip():
            return EMPTY
        return Cell(CellKind.TEXT, value)
    # numpy scalars and the like
    if pd.isna(value):
        return EMPTY
    if hasattr(value, "item"):
        return decode_cell(value.item())
    return Cell(CellKind.OTHER, value)


def serial_to_date(serial: float) -> date:
    """Convert a spreadsheet day-count serial to a calendar date (25569 = 1970-01-01)."""
    try:
        serial = float(serial)
        if not math.isfinite(serial):
            raise ValueError(serial)
        return (_UNIX_EPOCH + timedelta(days=serial - SERIAL_DATE_UNIX_EPOCH)).date()
    except (ValueError, OverflowError) as e:
        raise DateParseError(f"날짜 파싱 실패: {serial}") from e


def parse_date_text(text: str) -> date:
    """Parse a free-text date: ISO, dotted/slashed or ``YYYY년 M월 D일``."""
    match = _KOREAN_DATE.match(text) or _DOTTED_DATE.match(text)
    try:
        if match:
            year, month, day = (int(part) for part in match.groups())
            return date(year, month, day)
        parsed = pd.to_datetime(text.strip(), errors="raise")
    except (ValueError, OverflowError, TypeError) as e:
        raise DateParseError(f"날짜 파싱 실패: {text}") from e
    if parsed is pd.NaT:
        raise DateParseError(f"날짜 파싱 실패: {text}")
    return parsed.date()


def normalize_date(cell: Cell) -> str:
    """Return the cell's calendar date as ``YYYY-MM-DD``."""
    if cell.kind is CellKind.DATE:
        day = cell.value
    elif cell.kind is CellKind.NUMBER:
        day = serial_to_date(cell.value)
    elif cell.kind is CellKind.TEXT:
        day = parse_date_text(cell.value)
    else:
        raise DateParseError(f"유효하지 않은 날짜 형식: {cell.value}")
    return day.isoformat()


def normalize_amount_cell(cell: Cell) -> Decimal:
    """Return the cell's amount quantized to 2 fraction digits.

    Text cells lose every character other than digits, '.' and '-' first, so
    "₩1,234,567" and "-5,000원" both parse.
    """
    if cell.kind is CellKind.NUMBER:
        raw = cell.value
    elif cell.kind is CellKind.TEXT:
        stripped = _NON_NUMERIC.sub("", cell.value)
        match = _LEADING_NUMBER.match(stripped)
        if not match:
            raise AmountParseError(f"유효하지 않은 금액: {cell.value}")
        raw = Decimal(match.group(0))
    else:
        raise AmountParseError(f"유효하지 않은 금액: {cell.as_text()}")

    try:
        return normalize_amount(raw)
    except ValueError as e:
        raise AmountParseError(f"유효하지 않은 금액: {cell.as_text()}") from e

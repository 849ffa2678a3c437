"""Content fingerprints used as the per-owner dedup key."""

import hashlib
import math
from dataclasses import asdict
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Union

from .errors import InvalidInputError
from .models import ExpenseRecord, StampedRecord

Number = Union[int, float, Decimal]

_CENT = Decimal("0.01")


def normalize_amount(amount: Number) -> Decimal:
    """Round an amount to 2 fraction digits, ties away from zero.

    Floats go through their shortest repr first, so 0.1 + 0.2 becomes 0.30
    and 1.005 becomes 1.01 (not the 1.00 a binary ``round`` would give).
    Raises InvalidInputError for booleans, non-numbers and non-finite values.
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        raise InvalidInputError(f"amount must be a number, got {amount!r}")
    if isinstance(amount, float):
        if not math.isfinite(amount):
            raise InvalidInputError(f"amount must be finite, got {amount!r}")
        value = Decimal(repr(amount))
    else:
        value = Decimal(amount)
    if not value.is_finite():
        raise InvalidInputError(f"amount must be finite, got {amount!r}")
    try:
        return value.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise InvalidInputError(f"amount out of range: {amount!r}") from e


def format_amount(amount: Decimal) -> str:
    """Shortest decimal rendering: 100.00 -> '100', -5000.50 -> '-5000.5'."""
    text = format(amount.normalize(), "f")
    return "0" if text == "-0" else text


def generate_fingerprint(date: str, content: str, amount: Number) -> str:
    """SHA256 of ``{date}|{trimmed content}|{amount at 2 decimals}`` as lowercase hex.

    Category, payment method and memo never take part, so re-categorising a
    row does not make it a new record.
    """
    if not isinstance(date, str) or not date:
        raise InvalidInputError("date is required")
    if not isinstance(content, str) or not content.strip():
        raise InvalidInputError("content is required")
    normalized_amount = format_amount(normalize_amount(amount))

    raw_string = f"{date}|{content.strip()}|{normalized_amount}"
    return hashlib.sha256(raw_string.encode("utf-8")).hexdigest()


def stamp_records(records: Iterable[ExpenseRecord]) -> List[StampedRecord]:
    """Attach a fingerprint to every record of a batch."""
    stamped = []
    for record in records:
        fields = asdict(record)
        fields.pop("fingerprint", None)
        stamped.append(
            StampedRecord(
                **fields,
                fingerprint=generate_fingerprint(
                    record.date, record.content, record.amount
                ),
            )
        )
    return stamped

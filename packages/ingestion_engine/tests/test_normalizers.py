import math
from datetime import date, datetime
from decimal import Decimal

import pytest

from packages.ingestion_engine.errors import AmountParseError, DateParseError
from packages.ingestion_engine.normalizers import (
    EMPTY,
    Cell,
    CellKind,
    decode_cell,
    normalize_amount_cell,
    normalize_date,
    serial_to_date,
)


class TestDecodeCell:
    @pytest.mark.parametrize("value", [None, math.nan, "", "   "])
    def test_blank_values_are_empty(self, value):
        assert decode_cell(value) is EMPTY

    def test_numbers(self):
        assert decode_cell(45000) == Cell(CellKind.NUMBER, 45000)
        assert decode_cell(-1.5).kind is CellKind.NUMBER

    def test_text(self):
        assert decode_cell("2025-01-15") == Cell(CellKind.TEXT, "2025-01-15")

    def test_datetime_becomes_date(self):
        cell = decode_cell(datetime(2025, 1, 15, 13, 30))
        assert cell == Cell(CellKind.DATE, date(2025, 1, 15))

    def test_bool_is_not_a_number(self):
        assert decode_cell(True).kind is CellKind.OTHER

    def test_as_text_drops_integral_float_suffix(self):
        assert decode_cell(3.0).as_text() == "3"
        assert decode_cell(3.25).as_text() == "3.25"
        assert EMPTY.as_text() == ""


class TestDateNormalization:
    def test_serial_epoch(self):
        assert serial_to_date(25569) == date(1970, 1, 1)

    def test_serial_date(self):
        # 45672 -> 2025-01-15
        assert normalize_date(decode_cell(45672)) == "2025-01-15"

    def test_serial_with_time_fraction_keeps_the_day(self):
        assert normalize_date(decode_cell(45672.75)) == "2025-01-15"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2025-01-15", "2025-01-15"),
            ("2025-01-15 10:30:00", "2025-01-15"),
            ("2025/1/5", "2025-01-05"),
            ("2025.01.15", "2025-01-15"),
            ("2025.01.15.", "2025-01-15"),
            ("2025년 1월 15일", "2025-01-15"),
            ("2025년 12월 3일 (수)", "2025-12-03"),
        ],
    )
    def test_text_dates(self, text, expected):
        assert normalize_date(decode_cell(text)) == expected

    def test_date_cell(self):
        assert normalize_date(decode_cell(datetime(2025, 3, 1))) == "2025-03-01"

    @pytest.mark.parametrize("text", ["invalid-date", "2025-02-30", "2025년 13월 1일", "어제"])
    def test_unparseable_text_raises(self, text):
        with pytest.raises(DateParseError):
            normalize_date(decode_cell(text))

    def test_out_of_range_serial_raises(self):
        with pytest.raises(DateParseError):
            normalize_date(decode_cell(1e12))

    def test_other_kinds_raise(self):
        with pytest.raises(DateParseError, match="유효하지 않은 날짜 형식"):
            normalize_date(decode_cell(True))


class TestAmountNormalization:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (-5000, "-5000.00"),
            (1234.5, "1234.50"),
            ("1,234,567", "1234567.00"),
            ("₩1,234,567", "1234567.00"),
            ("-5,000원", "-5000.00"),
            (" 5000 ", "5000.00"),
            ("1,234.56", "1234.56"),
            ("-12.345", "-12.35"),
        ],
    )
    def test_valid_amounts(self, value, expected):
        assert normalize_amount_cell(decode_cell(value)) == Decimal(expected)

    @pytest.mark.parametrize("value", ["잘못된금액", "abc", "-", "."])
    def test_text_without_number_raises(self, value):
        with pytest.raises(AmountParseError, match="유효하지 않은 금액"):
            normalize_amount_cell(decode_cell(value))

    @pytest.mark.parametrize("value", [None, math.nan, math.inf, True])
    def test_missing_or_non_finite_raises(self, value):
        with pytest.raises(AmountParseError):
            normalize_amount_cell(decode_cell(value))

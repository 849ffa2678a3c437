"""Shared fixtures: in-memory ledger workbooks and ZIP archives."""

import io
import zipfile

import pytest
from openpyxl import Workbook

LEDGER_HEADER = ["날짜", "분류", "내용", "결제수단", "금액", "메모"]


def build_workbook(sheets):
    """``sheets`` maps sheet name -> list of rows (first row is the header)."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def build_archive(entries):
    """``entries`` maps entry name -> bytes; names ending in '/' become directories."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_workbook():
    return build_workbook


@pytest.fixture
def make_ledger():
    """Workbook with a single ledger sheet using the standard header."""

    def _make(rows, sheet_name="가계부 내역", header=None):
        return build_workbook({sheet_name: [header or LEDGER_HEADER, *rows]})

    return _make


@pytest.fixture
def make_archive():
    return build_archive

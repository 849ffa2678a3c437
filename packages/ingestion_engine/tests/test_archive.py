import zipfile
from unittest.mock import patch

import pytest

from packages.ingestion_engine.archive import walk_archive
from packages.ingestion_engine.errors import ArchiveOpenError, NoRecognizedFilesError


def test_walk_returns_only_spreadsheet_entries(make_archive):
    archive = make_archive(
        {
            "2025/": b"",
            "2025/january.xlsx": b"jan",
            "2025/FEBRUARY.XLSX": b"feb",
            "readme.txt": b"hello",
            "old.xls": b"legacy",
        }
    )

    entries = walk_archive(archive)

    assert entries == [("2025/january.xlsx", b"jan"), ("2025/FEBRUARY.XLSX", b"feb")]


def test_archive_without_spreadsheets_raises(make_archive):
    archive = make_archive({"notes.txt": b"nothing here", "data.csv": b"a,b"})

    with pytest.raises(NoRecognizedFilesError):
        walk_archive(archive)


def test_empty_archive_raises(make_archive):
    with pytest.raises(NoRecognizedFilesError):
        walk_archive(make_archive({}))


@pytest.mark.parametrize("payload", [b"", b"not a zip at all", b"PK\x03\x04broken"])
def test_corrupt_archive_raises_open_error(payload):
    with pytest.raises(ArchiveOpenError):
        walk_archive(payload)


def test_wrong_password_fails_whole_archive(make_archive):
    archive = make_archive({"a.xlsx": b"a", "b.xlsx": b"b"})

    with patch.object(
        zipfile.ZipFile, "read", side_effect=RuntimeError("Bad password for file 'a.xlsx'")
    ):
        with pytest.raises(ArchiveOpenError):
            walk_archive(archive, password="wrong")


def test_encrypted_archive_without_password_fails(make_archive):
    archive = make_archive({"a.xlsx": b"a"})

    with patch.object(
        zipfile.ZipFile,
        "read",
        side_effect=RuntimeError("File 'a.xlsx' is encrypted, password required for extraction"),
    ):
        with pytest.raises(ArchiveOpenError):
            walk_archive(archive)


def test_corrupt_entry_is_skipped(make_archive):
    archive = make_archive({"good.xlsx": b"good", "bad.xlsx": b"bad"})
    real_read = zipfile.ZipFile.read

    def flaky_read(self, name, pwd=None):
        filename = getattr(name, "filename", name)
        if filename == "bad.xlsx":
            raise zipfile.BadZipFile("Bad CRC-32 for file 'bad.xlsx'")
        return real_read(self, name, pwd)

    with patch.object(zipfile.ZipFile, "read", flaky_read):
        entries = walk_archive(archive)

    assert entries == [("good.xlsx", b"good")]


def test_password_is_applied(make_archive):
    archive = make_archive({"a.xlsx": b"a"})

    with patch.object(zipfile.ZipFile, "setpassword") as mock_setpassword:
        walk_archive(archive, password="비밀")

    mock_setpassword.assert_called_once_with("비밀".encode("utf-8"))

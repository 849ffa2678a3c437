"""ZIP archive walking: enumerate and extract the embedded ledger workbooks."""

import io
import logging
import zipfile
import zlib
from typing import List, Optional, Tuple

from .constants import DEFAULT_LAYOUT
from .errors import ArchiveOpenError, NoRecognizedFilesError

logger = logging.getLogger(__name__)

ArchiveEntry = Tuple[str, bytes]


def _is_password_failure(error: RuntimeError) -> bool:
    # zipfile reports "Bad password for file ..." and "... is encrypted,
    # password required for extraction" as plain RuntimeErrors
    return "password" in str(error).lower()


def open_archive(archive_bytes: bytes, password: Optional[str] = None) -> zipfile.ZipFile:
    try:
        archive = zipfile.ZipFile(io.BytesIO(archive_bytes))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, OSError) as e:
        raise ArchiveOpenError(
            "ZIP 파일 압축 해제에 실패했습니다. 비밀번호를 확인해주세요."
        ) from e
    if password:
        archive.setpassword(password.encode("utf-8"))
    return archive


def list_spreadsheet_entries(
    archive: zipfile.ZipFile, extension: str = DEFAULT_LAYOUT.extension
) -> List[zipfile.ZipInfo]:
    """Non-directory entries whose name ends with ``extension`` (any case)."""
    return [
        info
        for info in archive.infolist()
        if not info.is_dir() and info.filename.lower().endswith(extension.lower())
    ]


def walk_archive(
    archive_bytes: bytes,
    password: Optional[str] = None,
    extension: str = DEFAULT_LAYOUT.extension,
) -> List[ArchiveEntry]:
    """
    Extract every spreadsheet entry of a ZIP archive.

    Returns ``(entry name, entry bytes)`` pairs in archive order. A corrupt
    entry is logged and skipped; a wrong or missing password fails the whole
    archive with ArchiveOpenError since it applies to every entry alike.

    Raises NoRecognizedFilesError when no entry name matches ``extension``.
    """
    with open_archive(archive_bytes, password) as archive:
        candidates = list_spreadsheet_entries(archive, extension)
        if not candidates:
            raise NoRecognizedFilesError(
                f"ZIP 파일 내에 Excel({extension}) 파일이 없습니다."
            )

        entries: List[ArchiveEntry] = []
        for info in candidates:
            try:
                entries.append((info.filename, archive.read(info)))
            except RuntimeError as e:
                if _is_password_failure(e):
                    raise ArchiveOpenError(
                        "ZIP 파일 압축 해제에 실패했습니다. 비밀번호를 확인해주세요."
                    ) from e
                logger.warning("Failed to extract %s: %s", info.filename, e)
            except (zipfile.BadZipFile, zlib.error, NotImplementedError, OSError) as e:
                logger.warning("Failed to extract %s: %s", info.filename, e)

    logger.info("Extracted %d of %d spreadsheet entries", len(entries), len(candidates))
    return entries

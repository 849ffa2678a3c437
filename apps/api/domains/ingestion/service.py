"""Ingestion service: upload validation and the call into the ingestion engine."""

from datetime import date
from typing import Optional

import structlog

from apps.api.core.config import Settings
from apps.api.core.errors import BadRequestError, PayloadTooLargeError
from apps.api.core.logging import upload_log_context
from packages.ingestion_engine import ExpenseGateway, ingest_archive_async

logger = structlog.get_logger()

ARCHIVE_EXTENSION = ".zip"

SUCCESS_MESSAGE = "ZIP 파일이 성공적으로 처리되고 데이터베이스에 저장되었습니다."


def validate_upload(filename: str, contents: bytes, max_bytes: int) -> None:
    """Reject uploads that are not a non-empty ``.zip`` within the size limit."""
    if not filename:
        raise BadRequestError("파일이 선택되지 않았습니다.")
    if not filename.lower().endswith(ARCHIVE_EXTENSION):
        raise BadRequestError("ZIP 파일만 업로드 가능합니다.")
    if len(contents) > max_bytes:
        raise PayloadTooLargeError(
            f"파일 크기는 {max_bytes // (1024 * 1024)}MB를 초과할 수 없습니다."
        )
    if not contents:
        raise BadRequestError("빈 파일입니다.")


def parse_period(
    start_date: Optional[str], end_date: Optional[str]
) -> tuple[Optional[date], Optional[date]]:
    """Validate the optional ``YYYY-MM-DD`` filter bounds of an upload."""
    bounds = []
    for label, value in (("startDate", start_date), ("endDate", end_date)):
        if not value:
            bounds.append(None)
            continue
        try:
            bounds.append(date.fromisoformat(value.strip()))
        except ValueError:
            raise BadRequestError(f"{label}는 YYYY-MM-DD 형식이어야 합니다: {value}")
    start, end = bounds
    if start and end and start > end:
        raise BadRequestError("시작일이 종료일보다 늦을 수 없습니다.")
    return start, end


async def ingest_uploaded_archive(
    contents: bytes,
    filename: str,
    user_id: str,
    gateway: ExpenseGateway,
    settings: Settings,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> dict:
    """Run an uploaded archive through the pipeline and build the response body."""
    validate_upload(filename, contents, settings.MAX_UPLOAD_BYTES)
    start, end = parse_period(start_date, end_date)

    with upload_log_context(user_id=user_id, filename=filename):
        result = await ingest_archive_async(
            contents,
            owner_id=user_id,
            gateway=gateway,
            password=settings.zip_password,
            start_date=start,
            end_date=end,
            archive_timeout=settings.ARCHIVE_OPEN_TIMEOUT_SECONDS,
            persist_timeout=settings.PERSIST_TIMEOUT_SECONDS,
        )

        body = result.to_dict()
        logger.info(
            "archive_ingested",
            files_found=result.files_found,
            valid_rows=body["summary"]["totalValidRows"],
            row_errors=body["summary"]["totalErrors"],
            persistence=body["persistence"],
        )
    return {
        "message": SUCCESS_MESSAGE,
        "userId": user_id,
        "uploadedFile": filename,
        **body,
    }

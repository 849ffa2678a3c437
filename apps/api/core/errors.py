"""RFC 7807 Problem Details error handling.

Provides centralized exception handling middleware and custom exception
classes. All errors return a consistent JSON format:

    {
        "type": "about:blank",
        "title": "Bad Request",
        "status": 400,
        "detail": "ZIP 파일 내에 Excel(.xlsx) 파일이 없습니다.",
        "instance": "/api/v1/ingest/archive"
    }

Ingestion engine errors are translated here too, so routers can let them
propagate.
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from packages.ingestion_engine.errors import (
    ArchiveOpenError,
    IngestionError,
    InvalidPeriodError,
    NoRecognizedFilesError,
    PersistenceError,
)

logger = structlog.get_logger()


class AppError(Exception):
    """Base application error.

    ``extra`` members are merged into the problem details body.
    """

    def __init__(
        self,
        detail: str,
        status_code: int = 500,
        error_type: str = "about:blank",
        extra: Optional[dict[str, Any]] = None,
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_type = error_type
        self.extra = extra or {}
        super().__init__(detail)


class BadRequestError(AppError):
    """Upload rejected before processing."""

    def __init__(self, detail: str = "Bad request"):
        super().__init__(detail=detail, status_code=400)


class PayloadTooLargeError(AppError):
    """Upload exceeds the configured size limit."""

    def __init__(self, detail: str = "File too large"):
        super().__init__(detail=detail, status_code=413)


class AuthenticationError(AppError):
    """Authentication failed."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail=detail, status_code=401)


def ingestion_error_to_app_error(exc: IngestionError) -> AppError:
    """Map a fatal ingestion error onto an HTTP problem."""
    if isinstance(exc, (ArchiveOpenError, NoRecognizedFilesError, InvalidPeriodError)):
        return BadRequestError(str(exc))
    if isinstance(exc, PersistenceError):
        return AppError(
            detail="파일 처리는 완료되었지만 데이터베이스 저장에 실패했습니다.",
            status_code=500,
            extra={
                "error": str(exc),
                "processedFiles": [report.to_dict() for report in exc.processed_files],
            },
        )
    return AppError(detail="파일 처리 중 오류가 발생했습니다.", status_code=500)


def _build_problem_detail(
    status: int,
    title: str,
    detail: str,
    error_type: str = "about:blank",
    instance: str = "",
    request_id: str = "",
    extra: Optional[dict[str, Any]] = None,
) -> dict:
    """Build RFC 7807 Problem Details response body."""
    body = {
        "type": error_type,
        "title": title,
        "status": status,
        "detail": detail,
    }
    if instance:
        body["instance"] = instance
    if request_id:
        body["request_id"] = request_id
    if extra:
        body.update(extra)
    return body


# HTTP status code to title mapping
_STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _app_error_response(request: Request, exc: AppError) -> JSONResponse:
    title = _STATUS_TITLES.get(exc.status_code, "Error")
    request_id = getattr(request.state, "request_id", "")
    body = _build_problem_detail(
        status=exc.status_code,
        title=title,
        detail=exc.detail,
        error_type=exc.error_type,
        instance=str(request.url.path),
        request_id=request_id,
        extra=exc.extra,
    )
    return JSONResponse(status_code=exc.status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _app_error_response(request, exc)

    @app.exception_handler(IngestionError)
    async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
        logger.warning(
            "ingestion_failed",
            error_kind=type(exc).__name__,
            error=str(exc),
            path=str(request.url.path),
        )
        return _app_error_response(request, ingestion_error_to_app_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        title = _STATUS_TITLES.get(exc.status_code, "Error")
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        request_id = getattr(request.state, "request_id", "")
        body = _build_problem_detail(
            status=exc.status_code,
            title=title,
            detail=detail,
            instance=str(request.url.path),
            request_id=request_id,
        )
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), path=str(request.url.path))
        request_id = getattr(request.state, "request_id", "")
        body = _build_problem_detail(
            status=500,
            title="Internal Server Error",
            detail="An unexpected error occurred",
            instance=str(request.url.path),
            request_id=request_id,
        )
        return JSONResponse(status_code=500, content=body)

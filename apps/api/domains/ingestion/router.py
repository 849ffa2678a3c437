"""Ingestion router: ledger archive upload endpoint.

Accepts a ZIP of household-ledger workbooks, parses every workbook,
fingerprints the rows and upserts them into the caller's expenses.
Re-uploading the same archive is harmless: already stored rows are counted
as duplicates.
"""

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile
from supabase import Client

from apps.api.core.auth import get_current_user_id, get_user_client
from apps.api.core.config import Settings, get_settings
from apps.api.domains.ingestion.schemas import ArchiveIngestResponse
from apps.api.domains.ingestion.service import ingest_uploaded_archive
from packages.ingestion_engine import ExpenseGateway, SupabaseExpenseGateway

router = APIRouter(prefix="/ingest", tags=["ingestion"])
logger = structlog.get_logger()


def get_expense_gateway(
    client: Client = Depends(get_user_client),
    settings: Settings = Depends(get_settings),
) -> ExpenseGateway:
    """Gateway writing through the user's client, so RLS still applies."""
    return SupabaseExpenseGateway(client, table=settings.EXPENSES_TABLE)


@router.post("/archive", response_model=ArchiveIngestResponse)
async def ingest_archive_upload(
    file: UploadFile = File(...),
    start_date: str = Form(None, alias="startDate"),
    end_date: str = Form(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    gateway: ExpenseGateway = Depends(get_expense_gateway),
    settings: Settings = Depends(get_settings),
):
    """Ingest a ZIP of ledger workbooks for the authenticated user.

    Row and workbook problems are reported in the response body; a broken
    archive, an archive without workbooks, or a storage failure is returned
    as an RFC 7807 error.
    """
    filename = file.filename or ""
    contents = await file.read()
    logger.info("archive_received", user_id=user_id, filename=filename, size=len(contents))

    return await ingest_uploaded_archive(
        contents,
        filename=filename,
        user_id=user_id,
        gateway=gateway,
        settings=settings,
        start_date=start_date,
        end_date=end_date,
    )

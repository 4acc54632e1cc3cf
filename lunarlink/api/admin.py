"""
Admin API Endpoints

This module contains all admin-only endpoints for batch uploads, the
dashboard, the usage history and the full data reset. All endpoints require
an admin session.

Endpoints:
- POST /admin/uploads/preview - Count the codes a file would add (nothing stored)
- POST /admin/uploads - Upload a batch of codes for a speed tier
- GET /admin/dashboard - Counters, success rate, per-tier stock and alerts
- GET /admin/batches - All upload batches, newest first
- GET /admin/history - Used codes, with search and tier filter
- GET /admin/history/export - Used codes as CSV
- POST /admin/clear-all - Delete all codes, history, batches and counters
"""

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form, Query
from fastapi.responses import Response
from typing import List, Optional
import logging

from lunarlink.core.dependencies import admin_required, get_repository
from lunarlink.db.table_client import RepositoryError
from lunarlink.schemas.admin import (
    ClearAllRequest,
    DashboardOut,
    HistoryOut,
    MessageOut,
    UploadOut,
    UploadPreviewOut,
)
from lunarlink.schemas.code import Batch, SpeedTier
from lunarlink.services.code_repository import CodeRepository
from lunarlink.services.dashboard import DashboardService
from lunarlink.services.history_service import HistoryService
from lunarlink.services.ingestion import parse_codes

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

UNAVAILABLE_DETAIL = "Code store unavailable, please try again."


def _read_upload(file: UploadFile) -> bytes:
    try:
        return file.file.read()
    finally:
        file.file.close()


# ============================================================================
# UPLOAD ENDPOINTS
# ============================================================================

@router.post("/uploads/preview", response_model=UploadPreviewOut, dependencies=[Depends(admin_required)])
def preview_upload(file: UploadFile = File(...)):
    """
    Count the valid codes in a file without storing anything.

    Args:
        file (UploadFile): CSV, TXT, XLSX or XLS file

    Returns:
        UploadPreviewOut: File name, number of unique codes found and a message
    """
    codes = parse_codes(_read_upload(file), file.filename)
    if codes:
        message = f"Found {len(codes)} valid code(s) in file"
    else:
        message = "No valid codes found. Check your file format."
    return {"filename": file.filename or "", "codes_found": len(codes), "message": message}


@router.post("/uploads", response_model=UploadOut, dependencies=[Depends(admin_required)])
def upload_batch(
    batch_name: Optional[str] = Form(None),
    speed: Optional[str] = Form(None),
    allow_duplicate_name: bool = Form(False),
    file: Optional[UploadFile] = File(None),
    repository: CodeRepository = Depends(get_repository),
):
    """
    Upload a batch of codes for one speed tier.

    The file is parsed into a set of unique codes (see
    ``lunarlink.services.ingestion``). The codes, the batch record and the
    upload counters are stored in one transaction.

    Supported file formats:
    - .xlsx / .xls spreadsheets (first sheet)
    - .csv / .txt and any other extension, read as delimited text

    Args:
        batch_name (str): Name of the batch
        speed (str): Speed tier of every code in the file (16mbps, 20mbps, 50mbps)
        allow_duplicate_name (bool): Store the batch even if the name is already used
        file (UploadFile): File containing the codes
        repository (CodeRepository): Code repository dependency

    Returns:
        UploadOut: Batch name, tier, number of inserted codes and a message

    Raises:
        HTTPException: If a field is missing (status_code=400), the tier is unknown
                      or no codes were found (status_code=422), the batch name already
                      exists (status_code=409), or the store is unreachable (status_code=503)
    """
    batch_name = (batch_name or "").strip()
    if not batch_name or not speed or file is None:
        raise HTTPException(status_code=400, detail="Please fill in all fields")

    try:
        tier = SpeedTier(speed.strip().lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown speed tier: {speed}")

    logger.info(f"Admin upload of batch '{batch_name}' for {tier.value} from file {file.filename}")

    try:
        if not allow_duplicate_name and repository.batch_name_exists(batch_name):
            raise HTTPException(
                status_code=409,
                detail=f'A batch named "{batch_name}" already exists. Resend with allow_duplicate_name to continue.',
            )

        codes = parse_codes(_read_upload(file), file.filename)
        if not codes:
            raise HTTPException(
                status_code=422,
                detail="No valid codes found in file. Check format and try again.",
            )

        inserted = repository.insert_batch(sorted(codes), batch_name, tier)

    except HTTPException:
        raise
    except RepositoryError:
        raise HTTPException(status_code=503, detail=f"Error uploading batch: {UNAVAILABLE_DETAIL}")
    except Exception as e:
        logger.error(f"Failed to upload batch '{batch_name}': {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error uploading batch: {str(e)}")

    return {
        "batch_name": batch_name,
        "speed": tier,
        "inserted": inserted,
        "message": f'Successfully uploaded {inserted} codes to batch "{batch_name}"',
    }


# ============================================================================
# DASHBOARD ENDPOINTS
# ============================================================================

@router.get("/dashboard", response_model=DashboardOut, dependencies=[Depends(admin_required)])
def get_dashboard(repository: CodeRepository = Depends(get_repository)):
    """
    Get the admin dashboard figures.

    Returns:
        DashboardOut: Available and used codes, batch count, success rate,
                      per-tier stock, low stock alerts and recent batches
    """
    try:
        return DashboardService(repository).summary()
    except RepositoryError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)


@router.get("/batches", response_model=List[Batch], dependencies=[Depends(admin_required)])
def get_batches(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Maximum number of batches to return"),
    repository: CodeRepository = Depends(get_repository),
):
    try:
        return repository.list_batches(limit=limit)
    except RepositoryError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)


# ============================================================================
# HISTORY ENDPOINTS
# ============================================================================

@router.get("/history", response_model=HistoryOut, dependencies=[Depends(admin_required)])
def get_history(
    search: Optional[str] = Query(None, max_length=200, description="Match code, batch name or speed"),
    speed: Optional[SpeedTier] = Query(None, description="Only entries of this tier"),
    repository: CodeRepository = Depends(get_repository),
):
    """
    Get the usage history, newest first.

    Args:
        search (str, optional): Case-insensitive text matched against code, batch name and speed
        speed (SpeedTier, optional): Restrict to one speed tier

    Returns:
        HistoryOut: Matching entries, per-tier counts over the full history,
                    and the number of matching entries
    """
    try:
        service = HistoryService(repository)
        entries = service.list_history(search=search, speed=speed)
        counts = service.tier_counts()
    except RepositoryError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    return {"entries": entries, "counts": counts, "filtered": len(entries)}


@router.get("/history/export", dependencies=[Depends(admin_required)])
def export_history(
    search: Optional[str] = Query(None, max_length=200),
    speed: Optional[SpeedTier] = Query(None),
    repository: CodeRepository = Depends(get_repository),
):
    try:
        service = HistoryService(repository)
        entries = service.list_history(search=search, speed=speed)
    except RepositoryError:
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)

    if not entries:
        raise HTTPException(status_code=404, detail="No history to export")

    return Response(
        content=service.export_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{service.export_filename()}"'},
    )


# ============================================================================
# SYSTEM ENDPOINTS
# ============================================================================

@router.post("/clear-all", response_model=MessageOut, dependencies=[Depends(admin_required)])
def clear_all(body: ClearAllRequest, repository: CodeRepository = Depends(get_repository)):
    """
    Permanently delete all codes, history, batches and statistics.

    This cannot be undone, so the request must carry both ``confirm`` and
    ``final_confirm`` set to true. Nothing is deleted otherwise.

    Raises:
        HTTPException: If either confirmation is missing (status_code=400)
                      or the store is unreachable (status_code=503)
    """
    if not (body.confirm and body.final_confirm):
        raise HTTPException(
            status_code=400,
            detail="Clearing all data requires both confirm and final_confirm to be true.",
        )

    logger.warning("Admin requested a full data reset")
    try:
        repository.clear_all()
    except RepositoryError:
        raise HTTPException(status_code=503, detail="Error clearing data")
    return {"message": "All data has been cleared successfully"}

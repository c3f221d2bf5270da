"""
Upload API routes: register essay images and run batch grading over them.
"""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from essay_grader.api.deps import get_batch_session, get_grading_service, get_store
from essay_grader.core.logging import get_logger
from essay_grader.core.store import GraderStore
from essay_grader.schemas.grading import (
    BatchResponse,
    UploadItemResponse,
    UploadListResponse,
)
from essay_grader.services.batch_session import BatchSession
from essay_grader.services.essay_grading import MISSING_API_KEY, EssayGradingService

logger = get_logger()

router = APIRouter(prefix="/uploads", tags=["Uploads"])


def _list_response(session: BatchSession) -> UploadListResponse:
    return UploadListResponse(
        active_id=session.active_id,
        is_analyzing=session.is_analyzing,
        items=[UploadItemResponse.from_item(item) for item in session.items],
    )


@router.post("", response_model=UploadListResponse, status_code=201)
async def upload_images(
    files: List[UploadFile] = File(...),
    store: GraderStore = Depends(get_store),
    session: BatchSession = Depends(get_batch_session),
):
    """
    Add essay images to the session as idle items.
    """
    if not store.api_key:
        raise HTTPException(status_code=400, detail=MISSING_API_KEY)

    uploads = []
    for file in files:
        content = await file.read()
        if not content:
            raise HTTPException(status_code=400, detail=f"Empty file: {file.filename}")
        uploads.append((file.filename or "", file.content_type or "image/jpeg", content))

    session.add_files(uploads)
    return _list_response(session)


@router.get("", response_model=UploadListResponse)
async def list_uploads(session: BatchSession = Depends(get_batch_session)):
    """List uploads with their status and results."""
    return _list_response(session)


@router.delete("/{upload_id}")
async def delete_upload(upload_id: str, session: BatchSession = Depends(get_batch_session)):
    """Remove one upload. A running batch skips it if it has not started yet."""
    if not session.remove(upload_id):
        raise HTTPException(status_code=404, detail="Upload not found")
    return {"message": "Upload deleted"}


@router.delete("")
async def clear_uploads(session: BatchSession = Depends(get_batch_session)):
    """Remove all uploads."""
    try:
        session.reset()
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"message": "Uploads cleared"}


@router.post("/analyze", response_model=BatchResponse)
async def analyze_uploads(
    session: BatchSession = Depends(get_batch_session),
    service: EssayGradingService = Depends(get_grading_service),
):
    """
    Grade every idle or failed upload, one after another.

    Per-item failures are reported on the item; the batch itself succeeds.
    """
    if not service.store.api_key:
        raise HTTPException(status_code=400, detail=MISSING_API_KEY)

    try:
        summary = await service.analyze_batch(session)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return BatchResponse(
        summary=summary,
        items=[UploadItemResponse.from_item(item) for item in session.items],
    )


@router.post("/cancel")
async def cancel_analysis(session: BatchSession = Depends(get_batch_session)):
    """Stop the running batch before its next item."""
    return {"cancelled": session.request_cancel()}

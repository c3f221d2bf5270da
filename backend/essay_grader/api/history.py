"""
History API routes: list, complete, export, import and render graded essays.
"""

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response

from essay_grader.api.deps import get_store
from essay_grader.core.datetime_utils import today_iso
from essay_grader.core.logging import get_logger
from essay_grader.core.store import GraderStore, parse_import_text
from essay_grader.schemas.grading import (
    HistoryImportRequest,
    HistoryImportResponse,
    HistoryStatus,
    SegmentResponse,
)
from essay_grader.services.annotated_text import AnnotatedText, Correction, MarkedSegment
from essay_grader.services.html_generator import HTMLGenerator

logger = get_logger()

router = APIRouter(prefix="/history", tags=["History"])


@router.get("")
async def list_history(
    status: Optional[HistoryStatus] = None,
    store: GraderStore = Depends(get_store),
):
    """
    List history entries, newest first.

    Without ``status`` every entry that is not completed is returned.
    """
    return [entry.to_json_dict() for entry in store.filter_history(status)]


@router.get("/export")
async def export_history(store: GraderStore = Depends(get_store)):
    """Download the full history as a JSON backup."""
    content = json.dumps(store.export_history(), indent=2, ensure_ascii=False)
    filename = f"essay_grader_backup_{today_iso()}.json"
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=HistoryImportResponse)
async def import_history(
    request: HistoryImportRequest,
    store: GraderStore = Depends(get_store),
):
    """Prepend records from a pasted JSON backup."""
    try:
        imported = store.import_history(parse_import_text(request.json_text))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return HistoryImportResponse(imported=imported, total=len(store.history))


@router.delete("")
async def clear_history(store: GraderStore = Depends(get_store)):
    """Delete all history entries."""
    store.clear_history()
    return {"message": "History cleared"}


@router.get("/{entry_id}")
async def get_history_entry(entry_id: str, store: GraderStore = Depends(get_store)):
    entry = store.get_history_entry(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="History entry not found")
    return entry.to_json_dict()


@router.post("/{entry_id}/complete")
async def complete_history_entry(entry_id: str, store: GraderStore = Depends(get_store)):
    """Mark a graded essay as reviewed."""
    entry = store.mark_completed(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="History entry not found")
    return entry.to_json_dict()


@router.get("/{entry_id}/segments", response_model=List[SegmentResponse])
async def get_history_segments(entry_id: str, store: GraderStore = Depends(get_store)):
    """Annotated correction text split into display segments."""
    entry = store.get_history_entry(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="History entry not found")

    segments = []
    for segment in AnnotatedText(entry.diff_text):
        if isinstance(segment, Correction):
            segments.append(
                SegmentResponse(
                    kind=segment.kind,
                    original=segment.original,
                    correction=segment.correction,
                    reason=segment.reason,
                )
            )
        elif isinstance(segment, MarkedSegment):
            segments.append(SegmentResponse(kind=segment.kind, text=segment.text, style=segment.style))
        else:
            segments.append(SegmentResponse(kind=segment.kind, text=segment.text))
    return segments


@router.get("/{entry_id}/report", response_class=HTMLResponse)
async def get_history_report(entry_id: str, store: GraderStore = Depends(get_store)):
    """Standalone HTML report with red-ink corrections."""
    entry = store.get_history_entry(entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="History entry not found")
    return HTMLResponse(content=HTMLGenerator().build_html(entry))

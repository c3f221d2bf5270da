"""
Shared FastAPI dependencies: the process-wide store, upload session and grading service.
"""

from typing import Optional

from fastapi import Depends

from essay_grader.core.database import get_session_local
from essay_grader.core.store import GraderStore
from essay_grader.services.batch_session import BatchSession
from essay_grader.services.essay_grading import EssayGradingService

_store: Optional[GraderStore] = None
_batch_session: Optional[BatchSession] = None


def get_store() -> GraderStore:
    """Get the loaded settings-and-history store (created on first use)."""
    global _store
    if _store is None:
        _store = GraderStore(get_session_local()).load()
    return _store


def get_batch_session() -> BatchSession:
    """Get the upload session of this process."""
    global _batch_session
    if _batch_session is None:
        _batch_session = BatchSession()
    return _batch_session


def get_grading_service(store: GraderStore = Depends(get_store)) -> EssayGradingService:
    return EssayGradingService(store)

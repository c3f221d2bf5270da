"""
Schemas package initialization.
"""

from essay_grader.schemas.grading import (
    GradingLevel,
    UploadStatus,
    HistoryStatus,
    GradingResult,
    HistoryEntry,
    UploadItem,
    UploadItemResponse,
    UploadListResponse,
    BatchSummary,
    BatchResponse,
    HistoryImportRequest,
    HistoryImportResponse,
    SegmentResponse,
)

from essay_grader.schemas.settings import (
    SettingsResponse,
    SettingsUpdate,
)

__all__ = [
    # Grading
    "GradingLevel",
    "UploadStatus",
    "HistoryStatus",
    "GradingResult",
    "HistoryEntry",
    "UploadItem",
    "UploadItemResponse",
    "UploadListResponse",
    "BatchSummary",
    "BatchResponse",
    "HistoryImportRequest",
    "HistoryImportResponse",
    "SegmentResponse",
    # Settings
    "SettingsResponse",
    "SettingsUpdate",
]

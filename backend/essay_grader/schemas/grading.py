"""
Schemas for essay grading: levels, grading results, history entries and upload items.
"""

from enum import Enum
from typing import Annotated, Any, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class GradingLevel(str, Enum):
    """Instructional rubric tier controlling prompt content."""

    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    UNIVERSITY = "University"

    @classmethod
    def parse(cls, value: Optional[str]) -> "GradingLevel":
        """Parse a stored level string; unknown values fall back to Secondary."""
        try:
            return cls(value)
        except ValueError:
            return cls.SECONDARY


class UploadStatus(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    DONE = "done"
    ERROR = "error"


class HistoryStatus(str, Enum):
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"


def _text_or_default(default: str):
    def _coerce(value: Any) -> str:
        if value is None:
            return default
        if not isinstance(value, str):
            value = str(value)
        return value or default

    return _coerce


def _coerce_score(value: Any) -> Union[int, float]:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    return int(number) if number.is_integer() else number


def _coerce_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [str(value)]


Text = Annotated[str, BeforeValidator(_text_or_default(""))]
Score = Annotated[Union[int, float], BeforeValidator(_coerce_score)]
StrList = Annotated[List[str], BeforeValidator(_coerce_str_list)]


class GradingResult(BaseModel):
    """
    Decoded AI response for one essay.

    Field names follow the JSON contract given to the model (camelCase aliases).
    Missing or null fields are defaulted here, once, so consumers never need
    their own fallbacks. Unknown keys returned by the model are kept.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", protected_namespaces=())

    student_name: Annotated[str, BeforeValidator(_text_or_default("Unknown"))] = Field(
        "Unknown", alias="studentName"
    )
    ocr_text: Text = Field("", alias="ocrText")
    title: Annotated[str, BeforeValidator(_text_or_default("Untitled"))] = Field(
        "Untitled", alias="title"
    )
    score: Score = Field(0, alias="score")
    diff_text: Text = Field("", alias="diffText")
    corrected_text: Text = Field("", alias="correctedText")
    comments: Text = Field("", alias="comments")
    suggestions: StrList = Field(default_factory=list, alias="suggestions")
    spelling_errors: StrList = Field(default_factory=list, alias="spellingErrors")
    strength_summary: Text = Field("", alias="strengthSummary")
    improvement_summary: Text = Field("", alias="improvementSummary")
    processed_image_base64: Optional[str] = Field(None, alias="processedImageBase64")
    model_used: Optional[str] = Field(None, alias="modelUsed")

    def to_json_dict(self) -> dict:
        """Serialize with the camelCase keys used in storage and exports."""
        return self.model_dump(by_alias=True, mode="json")


class HistoryEntry(GradingResult):
    """A persisted grading result plus bookkeeping."""

    id: str
    date: str
    level: str = GradingLevel.PRIMARY.value
    model: Optional[str] = None
    status: HistoryStatus = HistoryStatus.INCOMPLETE


class UploadItem(BaseModel):
    """
    One submitted image awaiting or having undergone grading.

    Instances are treated as immutable; state changes produce a copy via
    ``model_copy(update=...)`` which the batch session swaps in.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    content_type: str = "image/jpeg"
    image: bytes = Field(repr=False)
    preview: str = Field("", repr=False)
    status: UploadStatus = UploadStatus.IDLE
    result: Optional[GradingResult] = None
    error_msg: Optional[str] = None


class UploadItemResponse(BaseModel):
    """Upload item as returned by the API (without raw image bytes)."""

    id: str
    filename: str
    preview: str
    status: UploadStatus
    result: Optional[dict] = None
    error_msg: Optional[str] = None

    @classmethod
    def from_item(cls, item: UploadItem) -> "UploadItemResponse":
        return cls(
            id=item.id,
            filename=item.filename,
            preview=item.preview,
            status=item.status,
            result=item.result.to_json_dict() if item.result else None,
            error_msg=item.error_msg,
        )


class UploadListResponse(BaseModel):
    active_id: Optional[str] = None
    is_analyzing: bool = False
    items: List[UploadItemResponse]


class BatchSummary(BaseModel):
    """Outcome of one batch analysis run."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: bool = False


class BatchResponse(BaseModel):
    summary: BatchSummary
    items: List[UploadItemResponse]


class HistoryImportRequest(BaseModel):
    """Pasted backup text (a JSON array of history records)."""

    json_text: str = Field(..., description="JSON array exported from history")


class HistoryImportResponse(BaseModel):
    imported: int
    total: int


class SegmentResponse(BaseModel):
    """One display segment of an annotated text."""

    kind: str  # text, correction, marked
    text: Optional[str] = None
    original: Optional[str] = None
    correction: Optional[str] = None
    reason: Optional[str] = None
    style: Optional[str] = None

"""
Pydantic schemas for Settings API.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from essay_grader.schemas.grading import GradingLevel


class SettingsResponse(BaseModel):
    """Current grading preferences. The API key itself is never returned."""

    has_api_key: bool
    level: GradingLevel
    model: str
    preset_models: List[str]
    is_custom_model: bool


class SettingsUpdate(BaseModel):
    """Request to update grading preferences.

    ``model`` may be one of the preset ids or "custom", in which case
    ``custom_model`` must carry the model id.
    """

    api_key: Optional[str] = Field(None, description="Google AI Studio API key")
    level: Optional[GradingLevel] = None
    model: Optional[str] = None
    custom_model: Optional[str] = None

"""
Settings API routes (API key, grading level, model).
"""

from fastapi import APIRouter, Depends, HTTPException

from essay_grader.api.deps import get_store
from essay_grader.core.config import get_config
from essay_grader.core.logging import get_logger
from essay_grader.core.store import GraderStore
from essay_grader.schemas.settings import SettingsResponse, SettingsUpdate

logger = get_logger()

router = APIRouter(prefix="/settings", tags=["Settings"])

CUSTOM_MODEL = "custom"


def _settings_response(store: GraderStore) -> SettingsResponse:
    presets = get_config().gemini.preset_models
    return SettingsResponse(
        has_api_key=bool(store.api_key),
        level=store.level,
        model=store.model,
        preset_models=presets,
        is_custom_model=store.model not in presets,
    )


@router.get("", response_model=SettingsResponse)
async def get_settings(store: GraderStore = Depends(get_store)):
    """
    Get grading preferences. The API key is never returned.
    """
    return _settings_response(store)


@router.put("", response_model=SettingsResponse)
async def update_settings(
    request: SettingsUpdate,
    store: GraderStore = Depends(get_store),
):
    """
    Update grading preferences.

    Choosing ``model="custom"`` requires ``custom_model``.
    """
    model = request.model
    if model == CUSTOM_MODEL:
        model = request.custom_model or ""

    try:
        store.update_settings(api_key=request.api_key, level=request.level, model=model)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Settings updated: level=%s, model=%s", store.level.value, store.model)
    return _settings_response(store)

"""
Tolerant decoding of the JSON payload embedded in a model's text reply.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from essay_grader.core.logging import get_logger
from essay_grader.schemas.grading import GradingResult
from essay_grader.services.errors import AIOutputFormatError

logger = get_logger()

FORMAT_ERROR_MESSAGE = "AI output format error. Please try analyzing again."

_FENCE_RE = re.compile(r"```json|```")
# A backslash that does not start a valid JSON escape sequence
_LONE_BACKSLASH_RE = re.compile(r'\\(?!["\\/bfnrtu])')


def strip_code_fences(text: str) -> str:
    """Remove every ```json / ``` marker and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


def repair_backslashes(text: str) -> str:
    """Double every backslash that is not followed by a JSON escape character."""
    return _LONE_BACKSLASH_RE.sub(r"\\\\", text)


def parse_robust_json(text: str) -> Any:
    """
    Parse JSON from model output, repairing invalid escapes once.

    Args:
        text: Raw model text, possibly fenced.

    Returns:
        The parsed JSON value.

    Raises:
        AIOutputFormatError: If the text is not JSON even after repair.
    """
    clean_text = strip_code_fences(text or "")
    try:
        return json.loads(clean_text)
    except json.JSONDecodeError as e:
        logger.warning("First JSON parse failed, attempting repairs... %s", e)

    try:
        return json.loads(repair_backslashes(clean_text))
    except json.JSONDecodeError as e:
        logger.error("Second JSON parse failed: %s", e)
        raise AIOutputFormatError(FORMAT_ERROR_MESSAGE) from e


def decode_grading_result(text: str) -> GradingResult:
    """
    Decode model text into a GradingResult with defaults applied.

    Raises:
        AIOutputFormatError: If the text is not a JSON object of the expected shape.
    """
    data = parse_robust_json(text)
    if not isinstance(data, dict):
        logger.error("Model returned JSON %s instead of an object", type(data).__name__)
        raise AIOutputFormatError(FORMAT_ERROR_MESSAGE)
    try:
        return GradingResult.model_validate(data)
    except ValidationError as e:
        logger.error("Model JSON does not match the grading result shape: %s", e)
        raise AIOutputFormatError(FORMAT_ERROR_MESSAGE) from e

"""
Errors raised by the grading pipeline.

Every failure of a single essay is a GradingError subclass, so the batch loop
can record it on the item and move on. Missing user input (no API key, bad
import payload) is reported with ValueError instead.
"""

from typing import Optional


class GradingError(Exception):
    """Base class for failures while grading one essay."""


class ImageDecodeError(GradingError):
    """The uploaded file could not be decoded as an image."""


class ImageProcessingError(GradingError):
    """Resizing, filtering or re-encoding the image failed."""


class GradingAPIError(GradingError):
    """The grading endpoint answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NoResponseTextError(GradingError):
    """The response envelope carried no model text."""


class AIOutputFormatError(GradingError):
    """The model text could not be decoded as JSON, even after repair."""

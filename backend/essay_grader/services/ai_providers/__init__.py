"""
Vision providers used to grade scanned essays.
"""

from .base import BaseVisionProvider
from .gemini import GeminiProvider, extract_response_text

__all__ = [
    "BaseVisionProvider",
    "GeminiProvider",
    "extract_response_text",
]

"""
Base class for vision providers that grade a scanned essay.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BaseVisionProvider(ABC):
    """Base class for providers that take an image plus instructions and return text."""

    def __init__(self, api_key: str, model: Optional[str] = None):
        """
        Initialize provider.

        Args:
            api_key: API key for the provider
            model: Model name (optional, uses default if not specified)
        """
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def grade_image(self, prompt: str, image_base64: str) -> str:
        """
        Send the grading prompt and a JPEG image, return the model's text output.

        Args:
            prompt: Instruction and rubric text
            image_base64: Base64 JPEG payload (no data: prefix)

        Returns:
            Raw model text (expected to be JSON)
        """

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""

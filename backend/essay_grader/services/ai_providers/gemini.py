"""
Google Gemini provider for essay grading over the Generative Language REST API.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from essay_grader.core.config import GeminiConfig, get_config
from essay_grader.core.logging import get_logger
from essay_grader.services.errors import GradingAPIError, NoResponseTextError
from essay_grader.services.http_retry import Sleep, fetch_with_retry

from .base import BaseVisionProvider

logger = get_logger()


def extract_response_text(data: Any) -> Optional[str]:
    """Return candidates[0].content.parts[0].text, or None when any level is missing."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


class GeminiProvider(BaseVisionProvider):
    """Google Gemini vision provider."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        config: Optional[GeminiConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize Gemini provider.

        Args:
            api_key: Google AI Studio API key
            model: Model name (default from config: gemini-2.5-flash-preview-09-2025)
            config: Endpoint, timeout and retry settings
            client: Optional HTTP client (tests pass one with a mock transport)
            sleep: Backoff delay function
        """
        self.config = config or get_config().gemini
        super().__init__(api_key, model or self.config.default_model)
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client if this provider created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def endpoint_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.model}:generateContent"

    def build_payload(self, prompt: str, image_base64: str) -> Dict[str, Any]:
        """Request body: one user turn with the prompt and the inline JPEG."""
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {"inlineData": {"mimeType": "image/jpeg", "data": image_base64}},
                    ],
                }
            ],
            "generationConfig": {"responseMimeType": "application/json"},
        }

    def error_message(self, status_code: int) -> str:
        """User-facing message for a non-success status."""
        if status_code == 404:
            return f"Model '{self.model}' not found. Check Settings."
        if status_code == 400:
            return "Invalid API Key or Bad Request."
        if status_code == 403:
            return "API Key permissions denied."
        if status_code == 503:
            return "Server is busy (503). Please try again later."
        return f"API Error: {status_code}"

    async def grade_image(self, prompt: str, image_base64: str) -> str:
        """
        Grade a scanned essay using Gemini.

        Returns:
            The model's text output (a JSON string per the prompt contract)

        Raises:
            GradingAPIError: On a non-success status or when the network keeps failing
            NoResponseTextError: If the response carries no text
        """
        client = await self._get_client()
        logger.info("Calling Gemini: model=%s, image=%d chars", self.model, len(image_base64))

        try:
            response = await fetch_with_retry(
                client,
                "POST",
                self.endpoint_url,
                retries=self.config.max_retries,
                backoff=self.config.initial_backoff,
                sleep=self._sleep,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=self.build_payload(prompt, image_base64),
            )
        except httpx.TransportError as e:
            logger.error("Gemini request failed after retries: %s", e)
            raise GradingAPIError(f"Network error: {e}") from e

        if not response.is_success:
            logger.error("Gemini API error: %s - %s", response.status_code, response.text[:500])
            raise GradingAPIError(self.error_message(response.status_code), response.status_code)

        try:
            data = response.json()
        except ValueError:
            data = None

        text = extract_response_text(data)
        if not text:
            raise NoResponseTextError("No response text from AI")

        logger.debug("Gemini response length: %d chars", len(text))
        return text

"""
Essay grading service.

Runs the grading pipeline for scanned essays: image normalization, prompt
construction, the Gemini request and response decoding, for one image or
sequentially across a batch session.
"""

import asyncio
from typing import Callable, Optional

from essay_grader.core.logging import get_logger
from essay_grader.core.store import GraderStore
from essay_grader.schemas.grading import (
    BatchSummary,
    GradingLevel,
    GradingResult,
    UploadItem,
    UploadStatus,
)
from essay_grader.services.ai_providers import BaseVisionProvider, GeminiProvider
from essay_grader.services.batch_session import BatchSession
from essay_grader.services.errors import GradingError
from essay_grader.services.essay_prompts import build_grading_prompt
from essay_grader.services.image_normalizer import ImageNormalizer
from essay_grader.services.response_decoder import decode_grading_result

logger = get_logger()

MISSING_API_KEY = "API Key is missing. Please go to Settings."

ProviderFactory = Callable[[str, str], BaseVisionProvider]


class EssayGradingService:
    """
    Essay grading service.

    Args:
        store: Settings and history (API key, level, model)
        provider_factory: Builds a provider from (api_key, model); Gemini by default
        normalizer: Image preprocessing
    """

    def __init__(
        self,
        store: GraderStore,
        provider_factory: Optional[ProviderFactory] = None,
        normalizer: Optional[ImageNormalizer] = None,
    ):
        self.store = store
        self.provider_factory = provider_factory or GeminiProvider
        self.normalizer = normalizer or ImageNormalizer()

    def _make_provider(self) -> BaseVisionProvider:
        return self.provider_factory(self.store.api_key, self.store.model)

    async def analyze_essay(
        self,
        item: UploadItem,
        level: Optional[GradingLevel] = None,
        provider: Optional[BaseVisionProvider] = None,
    ) -> GradingResult:
        """
        Grade one uploaded essay image.

        Args:
            item: Upload to grade
            level: Grading level for the prompt; the stored level by default
            provider: Provider to reuse; a temporary one is created otherwise

        Returns:
            Decoded result with the processed image and model id attached

        Raises:
            ValueError: If no API key is configured
            GradingError: On image, API or decode failures
        """
        if not self.store.api_key:
            raise ValueError(MISSING_API_KEY)

        prompt = build_grading_prompt(level or self.store.level)
        image_base64 = await asyncio.to_thread(self.normalizer.normalize, item.image)

        owns_provider = provider is None
        if provider is None:
            provider = self._make_provider()
        try:
            text = await provider.grade_image(prompt, image_base64)
        finally:
            if owns_provider:
                await provider.close()

        result = decode_grading_result(text)
        return result.model_copy(
            update={"processed_image_base64": image_base64, "model_used": provider.model}
        )

    async def analyze_batch(self, session: BatchSession) -> BatchSummary:
        """
        Grade every idle or failed upload in the session, one at a time.

        A failing item is marked as error and the batch moves on. Items
        removed before their turn are skipped. A cancellation request stops
        the run before the next item starts.

        Raises:
            RuntimeError: If a batch is already running in this session
        """
        session.begin_batch()
        summary = BatchSummary()
        provider = None

        try:
            queue = session.pending()
            provider = self._make_provider()
            logger.info("Batch started: %d items, model=%s", len(queue), provider.model)

            for item in queue:
                if session.cancel_requested:
                    summary.cancelled = True
                    logger.info("Batch cancelled before item %s", item.id)
                    break

                current = session.update(item.id, status=UploadStatus.ANALYZING, error_msg=None)
                if current is None:
                    logger.debug("Upload %s was removed, skipping", item.id)
                    continue
                session.active_id = item.id
                level = self.store.level

                try:
                    result = await self.analyze_essay(current, level, provider)
                except (GradingError, ValueError) as e:
                    logger.warning("Grading failed for %s: %s", current.filename, e)
                    session.update(item.id, status=UploadStatus.ERROR, error_msg=str(e))
                    summary.failed += 1
                except Exception as e:
                    logger.exception("Unexpected error grading %s", current.filename)
                    session.update(item.id, status=UploadStatus.ERROR, error_msg=str(e))
                    summary.failed += 1
                else:
                    session.update(item.id, status=UploadStatus.DONE, result=result)
                    self.store.add_result(item.id, result, level)
                    summary.succeeded += 1
                summary.processed += 1
        finally:
            if provider is not None:
                await provider.close()
            session.end_batch()

        logger.info(
            "Batch finished: processed=%d, succeeded=%d, failed=%d, cancelled=%s",
            summary.processed,
            summary.succeeded,
            summary.failed,
            summary.cancelled,
        )
        return summary

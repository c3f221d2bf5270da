"""
Services package initialization.
"""

from essay_grader.services.image_normalizer import ImageNormalizer
from essay_grader.services.http_retry import fetch_with_retry
from essay_grader.services.response_decoder import parse_robust_json, decode_grading_result
from essay_grader.services.annotated_text import AnnotatedText, parse_segments
from essay_grader.services.html_generator import HTMLGenerator
from essay_grader.services.batch_session import BatchSession
from essay_grader.services.essay_grading import EssayGradingService

__all__ = [
    "ImageNormalizer",
    "fetch_with_retry",
    "parse_robust_json",
    "decode_grading_result",
    "AnnotatedText",
    "parse_segments",
    "HTMLGenerator",
    "BatchSession",
    "EssayGradingService",
]

"""
Test configuration and fixtures
"""

import io
import json
import os
import sys
import tempfile

import pytest

# Keep logs and the default database out of the project tree
_TEST_ROOT = tempfile.mkdtemp(prefix="essay_grader_tests_")
os.environ.setdefault("DATA_DIR", os.path.join(_TEST_ROOT, "data"))
os.environ.setdefault("LOGS_DIR", os.path.join(_TEST_ROOT, "logs"))
os.environ.setdefault("ESSAY_GRADER_CONFIG", os.path.join(_TEST_ROOT, "missing.yaml"))

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from essay_grader.core.config import GeminiConfig
from essay_grader.core.database import init_db
from essay_grader.core.store import GraderStore


@pytest.fixture
def engine(tmp_path):
    """SQLite engine on a fresh temporary database with all tables."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def gemini_config():
    """Gemini settings with zero backoff so retries do not slow tests down."""
    return GeminiConfig(initial_backoff=0.0)


@pytest.fixture
def store(session_factory, gemini_config):
    """Loaded store on the temporary database."""
    return GraderStore(session_factory, gemini_config).load()


@pytest.fixture
def make_image():
    """Factory for encoded test images."""

    def _make(width=100, height=80, color=(200, 120, 40), fmt="PNG"):
        img = Image.new("RGB", (width, height), color=color)
        buffer = io.BytesIO()
        img.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def grading_payload():
    """A well-formed grading result as the model returns it."""
    return {
        "studentName": "Ann Lee",
        "ocrText": "I go to school yesterday.",
        "title": "My Day",
        "score": 78,
        "diffText": "I {{{go|||went|||Use past tense}}} to school yesterday.",
        "correctedText": "I went to school yesterday.",
        "comments": "A lovely start!",
        "suggestions": ["Check your verb tenses."],
        "spellingErrors": [],
        "strengthSummary": "Clear sentence.",
        "improvementSummary": "Past tense verbs.",
    }


@pytest.fixture
def gemini_envelope():
    """Wrap model text in a generateContent response body."""

    def _wrap(text):
        return {"candidates": [{"content": {"parts": [{"text": text}]}}]}

    return _wrap


@pytest.fixture
def gemini_reply(grading_payload, gemini_envelope):
    """Successful generateContent response carrying the grading payload."""
    return gemini_envelope(json.dumps(grading_payload))

"""
Settings-and-history store.

Holds the API key, grading level, selected model and grading history for one
running process. ``load()`` reads everything from the key/value table once,
``save()`` writes it back. Reads fall back to defaults and writes only log a
warning when the database is unavailable, so a storage problem never stops
grading.

Collections are never mutated in place: every change builds a new tuple and
swaps it in.
"""

import json
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from essay_grader.core.config import GeminiConfig, get_config
from essay_grader.core.datetime_utils import today_iso
from essay_grader.core.logging import get_logger
from essay_grader.core.security import decrypt_api_key_safe, encrypt_api_key
from essay_grader.models.store_entry import StoreEntry
from essay_grader.schemas.grading import (
    GradingLevel,
    GradingResult,
    HistoryEntry,
    HistoryStatus,
)
from essay_grader.utils.helpers import generate_id

logger = get_logger()

API_KEY_KEY = "essay_grader_api_key"
LEVEL_KEY = "essay_grader_level"
MODEL_KEY = "essay_grader_model"
HISTORY_KEY = "essay_grader_history"

IMPORT_NOT_ARRAY = "Invalid JSON: Must be an array []"
IMPORT_PARSE_ERROR = "JSON Parse Error. Please check format."


def parse_import_text(text: str) -> Any:
    """Parse pasted backup text. Raises ValueError on malformed JSON."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(IMPORT_PARSE_ERROR) from e


class GraderStore:
    """
    Persisted user preferences and grading history.

    Args:
        session_factory: SQLAlchemy session factory for the key/value table
        gemini_config: Supplies the default model id
    """

    def __init__(self, session_factory: sessionmaker, gemini_config: Optional[GeminiConfig] = None):
        self._session_factory = session_factory
        self._gemini = gemini_config or get_config().gemini
        self.api_key: str = ""
        self.level: GradingLevel = GradingLevel.PRIMARY
        self.model: str = self._gemini.default_model
        self._history: Tuple[HistoryEntry, ...] = ()

    # Raw key/value access

    def get_item(self, key: str, fallback: str = "") -> str:
        """Read a stored string, or ``fallback`` if missing or unreadable."""
        try:
            with self._session_factory() as db:
                entry = db.get(StoreEntry, key)
                return entry.value if entry is not None else fallback
        except SQLAlchemyError as e:
            logger.warning("Store read failed for %s: %s", key, e)
            return fallback

    def set_item(self, key: str, value: str) -> None:
        """Write a string; failures are logged and ignored."""
        try:
            with self._session_factory() as db:
                entry = db.get(StoreEntry, key)
                if entry is None:
                    db.add(StoreEntry(key=key, value=value))
                else:
                    entry.value = value
                db.commit()
        except SQLAlchemyError as e:
            logger.warning("Store write failed for %s: %s", key, e)

    def get_json(self, key: str, fallback: Any = None) -> Any:
        """Read and decode a JSON value, or ``fallback`` if missing or invalid."""
        raw = self.get_item(key, "")
        if not raw:
            return fallback
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored value for %s is not valid JSON, ignoring it", key)
            return fallback

    # Lifecycle

    def load(self) -> "GraderStore":
        """Read all preferences and the history from storage."""
        self.api_key = decrypt_api_key_safe(self.get_item(API_KEY_KEY)) or ""
        self.level = GradingLevel.parse(self.get_item(LEVEL_KEY, GradingLevel.PRIMARY.value))
        self.model = self.get_item(MODEL_KEY) or self._gemini.default_model

        records = self.get_json(HISTORY_KEY, [])
        if not isinstance(records, list):
            logger.warning("Stored history is not an array, starting empty")
            records = []
        self._history = tuple(self._valid_entries(records))

        logger.info(
            "Store loaded: level=%s, model=%s, history=%d entries, api_key=%s",
            self.level.value,
            self.model,
            len(self._history),
            "set" if self.api_key else "missing",
        )
        return self

    def save(self) -> None:
        """Write all preferences and the history back to storage."""
        self.save_settings()
        self.save_history()

    def save_settings(self) -> None:
        self.set_item(API_KEY_KEY, encrypt_api_key(self.api_key) if self.api_key else "")
        self.set_item(LEVEL_KEY, self.level.value)
        self.set_item(MODEL_KEY, self.model)

    def save_history(self) -> None:
        self.set_item(HISTORY_KEY, json.dumps(self.export_history()))

    @staticmethod
    def _valid_entries(records: Iterable[Any]) -> Iterable[HistoryEntry]:
        for record in records:
            try:
                yield HistoryEntry.model_validate(record)
            except ValidationError as e:
                logger.warning("Skipping unreadable history record: %s", e.errors()[:1])

    # Settings

    def update_settings(
        self,
        api_key: Optional[str] = None,
        level: Optional[GradingLevel] = None,
        model: Optional[str] = None,
    ) -> None:
        """
        Update preferences and persist them.

        Raises:
            ValueError: If an empty API key or model id is given.
        """
        if api_key is not None and not api_key.strip():
            raise ValueError("Please enter a valid API Key.")
        if model is not None and not model.strip():
            raise ValueError("Please enter a Custom Model ID")

        if api_key is not None:
            self.api_key = api_key.strip()
        if level is not None:
            self.level = level
        if model is not None:
            self.model = model.strip()
        self.save_settings()

    # History

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        return self._history

    def _ids(self) -> set:
        return {entry.id for entry in self._history}

    def get_history_entry(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((entry for entry in self._history if entry.id == entry_id), None)

    def filter_history(self, status: Optional[HistoryStatus] = None) -> List[HistoryEntry]:
        """Completed entries, or everything not completed (the default view)."""
        if status == HistoryStatus.COMPLETED:
            return [e for e in self._history if e.status == HistoryStatus.COMPLETED]
        return [e for e in self._history if e.status != HistoryStatus.COMPLETED]

    def add_result(
        self,
        entry_id: str,
        result: GradingResult,
        level: GradingLevel,
    ) -> HistoryEntry:
        """Prepend a new incomplete history entry built from a grading result."""
        taken = self._ids()
        if entry_id in taken:
            entry_id = generate_id(taken)

        # Bookkeeping keys take precedence over keys in the model output
        data = {
            **result.to_json_dict(),
            "id": entry_id,
            "date": today_iso(),
            "level": level.value,
            "model": result.model_used,
            "status": HistoryStatus.INCOMPLETE.value,
        }
        entry = HistoryEntry.model_validate(data)
        self._history = (entry,) + self._history
        self.save_history()
        return entry

    def mark_completed(self, entry_id: str) -> Optional[HistoryEntry]:
        """Flip an entry to completed. Returns the updated entry, or None if unknown."""
        updated = None
        entries = []
        for entry in self._history:
            if entry.id == entry_id:
                entry = entry.model_copy(update={"status": HistoryStatus.COMPLETED})
                updated = entry
            entries.append(entry)
        if updated is None:
            return None
        self._history = tuple(entries)
        self.save_history()
        return updated

    def export_history(self) -> List[dict]:
        """The full history as JSON-ready dicts."""
        return [entry.to_json_dict() for entry in self._history]

    def import_history(self, records: Any) -> int:
        """
        Prepend records from a backup, assigning fresh ids and default fields.

        Args:
            records: Parsed JSON (must be a list of objects)

        Returns:
            Number of imported records.

        Raises:
            ValueError: If the payload is not an array of history records.
        """
        if not isinstance(records, list):
            raise ValueError(IMPORT_NOT_ARRAY)

        taken = self._ids()
        today = today_iso()
        imported = []
        for item in records:
            if not isinstance(item, dict):
                raise ValueError(IMPORT_PARSE_ERROR)
            entry_id = generate_id(taken)
            taken.add(entry_id)
            sanitized = {
                **item,
                "id": entry_id,
                "date": str(item.get("date") or today),
                "level": str(item.get("level") or GradingLevel.PRIMARY.value),
                "studentName": item.get("studentName") or "Imported Student",
                "score": item.get("score") or 0,
                "status": item.get("status") or HistoryStatus.INCOMPLETE.value,
            }
            try:
                imported.append(HistoryEntry.model_validate(sanitized))
            except ValidationError as e:
                raise ValueError(IMPORT_PARSE_ERROR) from e

        self._history = tuple(imported) + self._history
        self.save_history()
        logger.info("Imported %d history records", len(imported))
        return len(imported)

    def clear_history(self) -> None:
        self._history = ()
        self.save_history()

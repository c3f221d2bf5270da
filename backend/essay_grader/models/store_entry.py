"""
Key/value table backing the settings-and-history store.
"""

from sqlalchemy import Column, String, Text

from essay_grader.core.database import Base
from essay_grader.core.datetime_utils import get_now_with_timezone


class StoreEntry(Base):
    """
    One persisted preference or collection, stored as text under a fixed key
    (e.g. "essay_grader_level", or "essay_grader_history" as a JSON array).
    """

    __tablename__ = "store_entries"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        String,
        default=lambda: get_now_with_timezone().isoformat(),
        onupdate=lambda: get_now_with_timezone().isoformat(),
    )

    def __repr__(self) -> str:
        return f"<StoreEntry(key={self.key})>"

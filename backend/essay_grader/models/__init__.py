"""
Models package initialization.
"""

from essay_grader.models.store_entry import StoreEntry

__all__ = ["StoreEntry"]

"""
In-memory registry of uploaded essay images for one running process.

The upload list is only ever replaced as a whole: every change builds a new
tuple, so a reader never sees a half-applied update.
"""

import base64
from typing import Iterable, List, Optional, Tuple

from essay_grader.core.logging import get_logger
from essay_grader.schemas.grading import UploadItem, UploadStatus
from essay_grader.utils.helpers import generate_id

logger = get_logger()

PENDING_STATUSES = (UploadStatus.IDLE, UploadStatus.ERROR)


def make_preview(data: bytes, content_type: str) -> str:
    """Build a ``data:`` URL for displaying the original upload."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class BatchSession:
    """Upload items awaiting or having undergone grading, plus batch run flags."""

    def __init__(self):
        self._items: Tuple[UploadItem, ...] = ()
        self.active_id: Optional[str] = None
        self.is_analyzing = False
        self._cancel_requested = False

    @property
    def items(self) -> Tuple[UploadItem, ...]:
        return self._items

    def get(self, item_id: str) -> Optional[UploadItem]:
        return next((item for item in self._items if item.id == item_id), None)

    def pending(self) -> List[UploadItem]:
        """Items a batch run would process, in submission order."""
        return [item for item in self._items if item.status in PENDING_STATUSES]

    def add_files(self, files: Iterable[Tuple[str, str, bytes]]) -> List[UploadItem]:
        """
        Register uploaded files as idle items.

        Args:
            files: (filename, content_type, data) tuples

        Returns:
            The newly created items
        """
        taken = {item.id for item in self._items}
        created = []
        for filename, content_type, data in files:
            item_id = generate_id(taken)
            taken.add(item_id)
            content_type = content_type or "image/jpeg"
            created.append(
                UploadItem(
                    id=item_id,
                    filename=filename or item_id,
                    content_type=content_type,
                    image=data,
                    preview=make_preview(data, content_type),
                )
            )
        if not created:
            return []

        if not self._items:
            self.active_id = created[0].id
        self._items = self._items + tuple(created)
        logger.info("Added %d uploads (%d total)", len(created), len(self._items))
        return created

    def update(self, item_id: str, **changes) -> Optional[UploadItem]:
        """
        Replace one item with an updated copy.

        Returns None when the item has been removed meanwhile.
        """
        updated = None
        items = []
        for item in self._items:
            if item.id == item_id:
                item = item.model_copy(update=changes)
                updated = item
            items.append(item)
        if updated is not None:
            self._items = tuple(items)
        return updated

    def remove(self, item_id: str) -> bool:
        remaining = tuple(item for item in self._items if item.id != item_id)
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        if self.active_id == item_id:
            self.active_id = remaining[0].id if remaining else None
        return True

    def reset(self) -> None:
        """Drop every upload."""
        if self.is_analyzing:
            raise ValueError("Cannot clear uploads while a batch is running")
        self._items = ()
        self.active_id = None

    # Batch run flags

    def begin_batch(self) -> None:
        if self.is_analyzing:
            raise RuntimeError("A batch analysis is already running")
        self.is_analyzing = True
        self._cancel_requested = False

    def end_batch(self) -> None:
        self.is_analyzing = False
        self._cancel_requested = False

    def request_cancel(self) -> bool:
        """Ask the running batch to stop before its next item. False if idle."""
        if not self.is_analyzing:
            return False
        self._cancel_requested = True
        logger.info("Batch cancellation requested")
        return True

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

"""
Utility functions and helpers.
"""

import re
import uuid
from typing import Container


def generate_id(taken: Container[str] = ()) -> str:
    """
    Generate a short opaque identifier not present in ``taken``.
    """
    while True:
        candidate = uuid.uuid4().hex[:12]
        if candidate not in taken:
            return candidate


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename by removing or replacing invalid characters.

    Args:
        filename: Original filename.

    Returns:
        Sanitized filename.
    """
    sanitized = re.sub(r'[<>:"/\\|?*\s]', "_", filename)
    # Remove leading/trailing underscores and dots
    sanitized = sanitized.strip("._")
    if len(sanitized) > 200:
        sanitized = sanitized[:200]
    return sanitized or "essay"

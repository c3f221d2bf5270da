"""
Utility functions package.
"""

from essay_grader.utils.helpers import generate_id, sanitize_filename

__all__ = ["generate_id", "sanitize_filename"]

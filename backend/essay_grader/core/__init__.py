"""
Core module initialization.
"""

from essay_grader.core.config import get_config, load_config
from essay_grader.core.database import init_db, Base
from essay_grader.core.logging import get_logger, setup_logging
from essay_grader.core.security import encrypt_api_key, decrypt_api_key

__all__ = [
    "get_config",
    "load_config",
    "init_db",
    "Base",
    "get_logger",
    "setup_logging",
    "encrypt_api_key",
    "decrypt_api_key",
]

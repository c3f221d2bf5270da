"""
Initialize database: create the key/value table that holds settings and history.

Usage (from backend directory):
  python -m scripts.init_db

The application also creates missing tables on startup, so this is only
needed to prepare a data directory ahead of time.

Tables Created:
  - store_entries: API key (encrypted), grading level, model and history
"""

from essay_grader.core.config import get_database_path
from essay_grader.core.database import init_db
from essay_grader.core.logging import get_logger

logger = get_logger()


def main():
    logger.info("Initializing database at %s...", get_database_path())
    init_db()
    logger.info(
        "Database initialization complete. Run the application with: python -m uvicorn main:app --host 0.0.0.0 --port 8090"
    )


if __name__ == "__main__":
    main()

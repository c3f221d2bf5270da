"""
Core configuration module for the Essay Scan Grader.
Loads configuration from YAML file and environment variables.
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8090
    debug: bool = False
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/essay_grader.db"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    file: str = "app.log"
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size: int = 10  # MB
    backup_count: int = 5


class GeminiConfig(BaseModel):
    """Remote grading endpoint (Google Generative Language API)."""

    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    default_model: str = "gemini-2.5-flash-preview-09-2025"
    preset_models: List[str] = [
        "gemini-2.5-flash-preview-09-2025",
        "gemini-3-pro-preview",
    ]
    timeout: float = 120.0  # seconds
    max_retries: int = 3
    initial_backoff: float = 1.0  # seconds, doubled on every retry


class ImageConfig(BaseModel):
    """Image normalization before upload."""

    max_width: int = 1200
    contrast_factor: float = 1.3
    jpeg_quality: int = 70


class AppConfig(BaseModel):
    """Main application configuration.

    API key, grading level and model are user preferences kept in the
    store (see essay_grader.core.store), not here.
    """

    server: ServerConfig = ServerConfig()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    gemini: GeminiConfig = GeminiConfig()
    image: ImageConfig = ImageConfig()


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent.parent


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file. If None, uses default location.

    Returns:
        AppConfig instance with loaded configuration.
    """
    if config_path is None:
        config_path = os.environ.get("ESSAY_GRADER_CONFIG")
        if config_path is None:
            config_path = get_project_root() / "config.yaml"

    config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
            return AppConfig(**config_data)

    return AppConfig()


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _resolve_data_dir() -> Path:
    """
    Resolve the data directory path.

    Supports two modes:
    1. Container mode: DATA_DIR environment variable is set (e.g., /app/data)
    2. Local development: Uses project root/data
    """
    data_dir_env = os.environ.get("DATA_DIR")

    if data_dir_env:
        return Path(data_dir_env).resolve()
    return (get_project_root() / "data").resolve()


def get_database_path() -> Path:
    """
    Get the absolute path to the database file.

    Only the filename from config 'database.path' is used; the file always
    lives in the data directory.
    """
    config = get_config()
    db_filename = Path(config.database.path).name

    db_path = (_resolve_data_dir() / db_filename).resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


def get_log_path() -> Path:
    """
    Get the absolute path to the log file.

    Supports both container and local development modes:
    - Container: $LOGS_DIR/app.log
    - Local: project_root/logs/app.log
    """
    config = get_config()

    logs_dir_env = os.environ.get("LOGS_DIR")
    if logs_dir_env:
        log_dir = Path(logs_dir_env)
    else:
        log_dir = get_project_root() / "logs"

    log_dir.mkdir(parents=True, exist_ok=True)

    # Use only the filename from config so logs never go outside logs/
    name = Path(config.logging.file).name or "app.log"
    return log_dir / name

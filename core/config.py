"""Configuration management for the question bank service."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path


def _get_base_dir() -> Path:
    """Get base directory, handling both development and frozen executables."""
    if getattr(sys, 'frozen', False):
        if sys.platform == 'win32':
            appdata = os.getenv('APPDATA', os.path.expanduser('~'))
            return Path(appdata) / 'QuestionBank'
        return Path.home() / '.question_bank'
    return Path(__file__).resolve().parents[1]


# Load .env from project root (only in development, not in a frozen build)
try:
    from dotenv import load_dotenv
    if not getattr(sys, 'frozen', False):
        env_path = _get_base_dir() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
except ImportError:
    # python-dotenv not installed, skip .env loading
    pass


def _env_flag(name: str) -> bool | None:
    """Read a tri-state boolean env var; unset means None."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _data_dir() -> Path:
    if env_path := os.getenv("QBANK_DATA_DIR"):
        return Path(env_path)
    return _get_base_dir() / "data"


@dataclass
class Settings:
    """Application settings."""

    base_dir: Path = _get_base_dir()
    data_dir: Path = _data_dir()
    host: str = os.getenv("QBANK_HOST", "127.0.0.1")
    port: int = int(os.getenv("QBANK_PORT", "8000"))
    log_level: str = os.getenv("QBANK_LOG_LEVEL", "INFO")
    max_field_length: int = int(os.getenv("QBANK_MAX_FIELD_LENGTH", "20000"))
    render_cache_size: int = int(os.getenv("QBANK_RENDER_CACHE_SIZE", "512"))
    latex_autofix: bool | None = _env_flag("QBANK_LATEX_AUTOFIX")

    @property
    def workbooks_dir(self) -> Path:
        return self.data_dir / "workbooks"

    @property
    def questions_file(self) -> Path:
        return self.data_dir / "questions.json"

    @property
    def config_file(self) -> Path:
        return self.data_dir / "config.json"


settings = Settings()

"""File utilities."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path

from core.config import settings
from core.logger import logger


def ensure_directories() -> None:
    """Create required directories."""
    for path in (settings.data_dir, settings.workbooks_dir):
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("Ensured directory: %s", path)


def timestamped_path(directory: Path, prefix: str, suffix: str) -> Path:
    """``<directory>/<prefix>_<YYYYmmdd_HHMMSS><suffix>``."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return directory / f"{prefix}_{timestamp}{suffix}"


def save_text(content: str, path: Path) -> Path:
    """Save UTF-8 text to a path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.debug("Saved file: %s", path)
    return path

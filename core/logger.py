"""Logging setup for the question bank service."""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def log_file() -> Path:
    return settings.data_dir / "logs" / "question_bank.log"


def init_logging(level: Optional[str] = None) -> None:
    """Attach console and rotating file handlers to the ``qbank`` logger once."""
    logger.setLevel((level or settings.log_level).upper())
    if logger.handlers:
        return

    path = log_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    # CJK question text must survive non-UTF-8 consoles
    if hasattr(sys.stdout, 'reconfigure'):
        sys.stdout.reconfigure(encoding='utf-8', errors='replace')
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    file_handler = RotatingFileHandler(
        path,
        maxBytes=1_000_000,
        backupCount=3,
        encoding='utf-8',
        errors='replace'
    )
    file_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    logger.debug("Logging to %s", path)


logger = logging.getLogger("qbank")

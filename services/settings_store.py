"""Per-installation preferences persisted to ``data/config.json``."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from core.config import settings
from core.logger import logger

AUTOFIX_KEY = "latex_autofix_enabled"


def _config_path(path: Optional[Path] = None) -> Path:
    return path or settings.config_file


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the saved config; a missing or unreadable file is an empty config."""
    config_file = _config_path(path)
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s, using defaults: %s", config_file, exc)
        return {}
    return config if isinstance(config, dict) else {}


def save_config(config: dict[str, Any], path: Optional[Path] = None) -> Path:
    config_file = _config_path(path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)
    return config_file


def get_autofix_enabled(path: Optional[Path] = None) -> bool:
    """Saved autofix preference; defaults to True when never set."""
    if path is None and settings.latex_autofix is not None:
        return settings.latex_autofix
    raw = load_config(path).get(AUTOFIX_KEY)
    if raw is None:
        return True
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() == "true"


def set_autofix_enabled(enabled: bool, path: Optional[Path] = None) -> None:
    config = load_config(path)
    config[AUTOFIX_KEY] = bool(enabled)
    save_config(config, path)
    logger.info("Settings saved: LaTeX autofix = %s", bool(enabled))


def resolve_autofix(explicit: Optional[bool] = None) -> bool:
    """An explicit caller value wins; otherwise read the saved setting once."""
    if explicit is not None:
        return bool(explicit)
    return get_autofix_enabled()

"""Pytest configuration for tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# This allows imports like "from services.latex..." to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.config import settings  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point every test at its own data directory with no saved preferences."""
    data_dir = tmp_path / "data"
    monkeypatch.setattr(settings, "data_dir", data_dir)
    monkeypatch.setattr(settings, "latex_autofix", None)
    return data_dir

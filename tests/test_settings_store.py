"""Tests for the persisted autofix preference."""
from __future__ import annotations

import json

from core.config import settings
from services.settings_store import (
    AUTOFIX_KEY,
    get_autofix_enabled,
    load_config,
    resolve_autofix,
    save_config,
    set_autofix_enabled,
)


def test_autofix_defaults_to_enabled() -> None:
    assert not settings.config_file.exists()
    assert get_autofix_enabled() is True


def test_autofix_round_trips_through_config_file() -> None:
    set_autofix_enabled(False)

    assert get_autofix_enabled() is False
    saved = json.loads(settings.config_file.read_text(encoding="utf-8"))
    assert saved == {AUTOFIX_KEY: False}


def test_other_keys_are_preserved() -> None:
    save_config({"theme": "dark"})
    set_autofix_enabled(False)

    assert load_config() == {"theme": "dark", AUTOFIX_KEY: False}


def test_string_values_are_accepted() -> None:
    save_config({AUTOFIX_KEY: "false"})
    assert get_autofix_enabled() is False

    save_config({AUTOFIX_KEY: "True"})
    assert get_autofix_enabled() is True


def test_unreadable_config_falls_back_to_default() -> None:
    settings.config_file.parent.mkdir(parents=True, exist_ok=True)
    settings.config_file.write_text("{not json", encoding="utf-8")

    assert load_config() == {}
    assert get_autofix_enabled() is True


def test_explicit_path(tmp_path) -> None:
    path = tmp_path / "other" / "config.json"
    set_autofix_enabled(False, path)

    assert get_autofix_enabled(path) is False
    assert get_autofix_enabled() is True


def test_resolve_autofix_prefers_explicit_value() -> None:
    set_autofix_enabled(False)

    assert resolve_autofix(True) is True
    assert resolve_autofix(None) is False


def test_environment_override(monkeypatch) -> None:
    set_autofix_enabled(True)
    monkeypatch.setattr(settings, "latex_autofix", False)

    assert get_autofix_enabled() is False
    assert resolve_autofix() is False

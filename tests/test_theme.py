from pathlib import Path

import pytest

from core.theme import ThemeStore, default_prefs_path


def test_defaults_follow_os_preference(tmp_path: Path) -> None:
    store = ThemeStore(tmp_path / "prefs.json")
    assert store.load() == "light"
    assert store.load(prefers_dark=True) == "dark"


def test_saved_theme_wins(tmp_path: Path) -> None:
    store = ThemeStore(tmp_path / "nested" / "prefs.json")
    store.save("dark")
    assert ThemeStore(store.path).load() == "dark"
    store.save("light")
    assert ThemeStore(store.path).load(prefers_dark=True) == "light"


def test_invalid_theme_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        ThemeStore(tmp_path / "prefs.json").save("sepia")


def test_unreadable_file_falls_back(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")
    assert ThemeStore(path).load(prefers_dark=True) == "dark"


def test_env_override(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RELEASE_INSIGHTS_PREFS", str(tmp_path / "custom.json"))
    assert default_prefs_path() == tmp_path / "custom.json"

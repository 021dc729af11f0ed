from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)

THEMES = ("light", "dark")
THEME_KEY = "theme"
PREFS_ENV_VAR = "RELEASE_INSIGHTS_PREFS"
DEFAULT_PREFS_PATH = Path.home() / ".release_insights" / "preferences.json"


def default_prefs_path() -> Path:
    override = os.environ.get(PREFS_ENV_VAR)
    return Path(override) if override else DEFAULT_PREFS_PATH


class ThemeStore:
    """Persist the light/dark preference in a small JSON file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else default_prefs_path()

    def _read(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, prefers_dark: bool = False) -> str:
        saved = self._read().get(THEME_KEY)
        if saved in THEMES:
            return saved
        return "dark" if prefers_dark else "light"

    def save(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme!r}")
        data = self._read()
        data[THEME_KEY] = theme
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

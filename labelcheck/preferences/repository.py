import json
from pathlib import Path
from typing import Any

from labelcheck.logging.logger import Log
from labelcheck.preferences.models import DEFAULT_THEME, Theme


class PreferencesRepository:
    """Reads and writes the user's presentation preferences as a JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = path.expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get_theme(self) -> Theme:
        """Return the stored theme. Only an explicit 'light' selects light mode."""
        stored = self._load().get("theme")
        if stored == Theme.LIGHT.value:
            return Theme.LIGHT
        return DEFAULT_THEME

    def set_theme(self, theme: Theme) -> None:
        data = self._load()
        data["theme"] = theme.value
        self._save(data)
        Log.info(f"Theme set to {theme.value}")

    def toggle_theme(self) -> Theme:
        theme = Theme.LIGHT if self.get_theme() is Theme.DARK else Theme.DARK
        self.set_theme(theme)
        return theme

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            Log.warning(f"Ignoring unreadable preferences file {self._path}: {exc}")
            return {}
        if not isinstance(data, dict):
            Log.warning(f"Ignoring malformed preferences file {self._path}")
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")

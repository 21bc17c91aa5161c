"""
Local preference store.

Remembers the league selected in the dashboard so other views can show its
image. Views receive the store explicitly; nothing reads it implicitly.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .data.models import SelectedLeague

logger = logging.getLogger(__name__)

SELECTED_LEAGUE_KEY = "selectedLeague"


class PreferenceStore:
    """Small JSON-file key-value store."""

    def __init__(self, path: str | Path = "data/preferences.json"):
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error reading preferences {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Any | None:
        """Get a stored value, None if absent."""
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value."""
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it existed."""
        data = self._read()
        if key not in data:
            return False
        del data[key]
        self._write(data)
        return True


class LeagueSelectionStore:
    """The currently selected league, on top of a PreferenceStore."""

    def __init__(self, store: PreferenceStore):
        self.store = store

    def get(self) -> SelectedLeague | None:
        """Currently selected league, None if unset or unreadable."""
        raw = self.store.get(SELECTED_LEAGUE_KEY)
        if raw is None:
            return None
        try:
            return SelectedLeague.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Error parsing selected league: {e}")
            return None

    def set(self, league: SelectedLeague) -> None:
        """Remember a league as selected."""
        self.store.set(SELECTED_LEAGUE_KEY, league.model_dump())
        logger.info(f"Selected league {league.id}")

    def clear(self) -> bool:
        """Forget the selection."""
        return self.store.delete(SELECTED_LEAGUE_KEY)

    def league_image(self, league_id: str | None) -> str | None:
        """Image of the selected league, only if it is the given league."""
        if not league_id:
            return None
        selected = self.get()
        if selected is None or selected.id != str(league_id):
            return None
        return selected.image


def get_league_selection(path: str | Path) -> LeagueSelectionStore:
    """Build the league selection store for a preference file."""
    return LeagueSelectionStore(PreferenceStore(path))

"""Persisted per-project default repositories.

The store remembers which repository a project's drafts were last
converted into when the user asked for it ("save as default"), so a later
conversion can skip the repository selector.

Loading never fails: a missing, unreadable or corrupt file yields empty
preferences and a logged warning. Saving writes atomically via a temp
file and rename.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from ghprojects.core.logging import get_logger
from ghprojects.exceptions import PreferencesError

_logger = get_logger("config.preferences")


class Preferences(BaseModel):
    """On-disk shape of the preferences file."""

    project_repositories: dict[str, str] = Field(
        default_factory=dict,
        description="Project node id -> preferred repository node id",
    )


class PreferenceStore:
    """Load/save wrapper around the preferences JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()
        self._prefs = Preferences()

    @classmethod
    def open(cls, path: Path) -> PreferenceStore:
        """Create a store and load the file at ``path``."""
        store = cls(path)
        store.load()
        return store

    def load(self) -> Preferences:
        """Read preferences from disk, falling back to empty preferences."""
        if not self.path.exists():
            self._prefs = Preferences()
            return self._prefs

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self._prefs = Preferences.model_validate(data)
        except OSError as e:
            _logger.warning("preferences_unreadable", path=str(self.path), error=str(e))
            self._prefs = Preferences()
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            _logger.warning("preferences_corrupted", path=str(self.path), error=str(e))
            self._prefs = Preferences()
        return self._prefs

    def save(self) -> None:
        """Write preferences atomically.

        Raises:
            PreferencesError: If the directory or file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.path.with_suffix(self.path.suffix + ".tmp")
            temp_file.write_text(
                json.dumps(self._prefs.model_dump(mode="json"), indent=2),
                encoding="utf-8",
            )
            temp_file.replace(self.path)
        except OSError as e:
            raise PreferencesError(f"failed to write {self.path}: {e}") from e
        _logger.debug("preferences_saved", path=str(self.path))

    @property
    def defaults(self) -> dict[str, str]:
        """Copy of the project -> repository mapping."""
        return dict(self._prefs.project_repositories)

    def get_default_repository(self, project_id: str) -> str | None:
        return self._prefs.project_repositories.get(project_id)

    def set_default_repository(self, project_id: str, repository_id: str) -> None:
        self._prefs.project_repositories[project_id] = repository_id

    def clear_default_repository(self, project_id: str) -> bool:
        """Remove a project's default. Returns True if one was set."""
        return self._prefs.project_repositories.pop(project_id, None) is not None

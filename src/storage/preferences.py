"""User preference persistence: one JSON blob, defaults when absent."""

import logging
from pathlib import Path

from pydantic import ValidationError

from src.models.user_settings import UserSettings
from src.storage._files import atomic_write_bytes

logger = logging.getLogger(__name__)


class PreferencesStore:
    """Reads and writes the user settings blob at a fixed path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load(self) -> UserSettings:
        try:
            return UserSettings.model_validate_json(self._path.read_bytes())
        except FileNotFoundError:
            return UserSettings()
        except (OSError, ValidationError) as exc:
            logger.warning("User settings unreadable, using defaults: %s", exc)
            return UserSettings()

    def save(self, settings: UserSettings) -> None:
        atomic_write_bytes(self._path, settings.model_dump_json(indent=2).encode("utf-8"))

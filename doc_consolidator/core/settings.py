"""
Settings management for Document Consolidator.

Preferences live in a JSON file under the user's app data directory. The
only value kept across sessions is the output filename stem.
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .sanitize import get_logger, sanitize_path_for_log


# Application name for settings directory
APP_NAME = "DocConsolidator"

OUTPUT_FILENAME_KEY = "output_filename"
DEFAULT_FILENAME_STEM = "merged"


logger = get_logger()


def get_app_data_dir() -> Path:
    """
    Get the application data directory.

    Returns:
        Path to app data directory (created if doesn't exist)
    """
    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
    else:  # Unix/Mac
        base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))

    app_dir = base / APP_NAME
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_settings_path() -> Path:
    """Get path to settings file."""
    return get_app_data_dir() / "settings.json"


def get_log_path() -> Path:
    """Get path to log file."""
    return get_app_data_dir() / "app.log"


class PreferenceStore:
    """
    Key/value string preferences persisted as a flat JSON object.

    Reads are served from memory after the first load; every write is
    flushed to disk immediately.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = path or get_settings_path()
        self._values: Optional[Dict[str, Any]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        if self._values is not None:
            return self._values

        self._values = {}
        if not self._path.exists():
            logger.info("No settings file found, using defaults")
            return self._values

        try:
            with open(self._path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if isinstance(data, dict):
                self._values = data
                logger.info("Settings loaded from file")
            else:
                logger.warning("Settings file is not a JSON object, using defaults")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load settings: {e}, using defaults")
        return self._values

    def get_preference(self, key: str) -> Optional[str]:
        """Return the stored string for key, or None."""
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_preference(self, key: str, value: str) -> bool:
        """
        Store a string value and save the file.

        Returns:
            True if saved successfully
        """
        values = self._load()
        values[key] = value
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, 'w', encoding='utf-8') as f:
                json.dump(values, f, indent=2)
            logger.debug(f"Settings saved to {sanitize_path_for_log(self._path)}")
            return True
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")
            return False


@dataclass
class OutputPreference:
    """
    Output filename stem, loaded once at init and saved on every change.
    """

    filename_stem: str = DEFAULT_FILENAME_STEM
    store: Optional[PreferenceStore] = None

    @classmethod
    def load(cls, store: PreferenceStore) -> 'OutputPreference':
        """Create the preference from the store, falling back to the default."""
        stem = store.get_preference(OUTPUT_FILENAME_KEY)
        return cls(filename_stem=stem or DEFAULT_FILENAME_STEM, store=store)

    def set_stem(self, stem: str) -> None:
        """Change the stem and persist it if it differs."""
        if stem == self.filename_stem:
            return
        self.filename_stem = stem
        if self.store is not None:
            self.store.set_preference(OUTPUT_FILENAME_KEY, stem)

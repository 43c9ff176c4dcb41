"""
User settings.

Stored as JSON in ~/.local/share/lnshot/settings.json. Unknown keys are
ignored and a missing or unreadable file means defaults.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from typing import Optional

from .utils.paths import SETTINGS_PATH, DEFAULT_PICTURES_DIRECTORY_NAME, ensure_lnshot_dir

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    pictures_directory_name: str = DEFAULT_PICTURES_DIRECTORY_NAME
    pictures_dir: Optional[str] = None  # None: XDG Pictures folder or ~/Pictures
    steam_path: Optional[str] = None  # None: auto-detect
    debounce_seconds: float = 2.0
    log_level: str = "INFO"


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from file, falling back to defaults per key"""
    path = path or SETTINGS_PATH
    settings = Settings()

    if not os.path.exists(path):
        return settings

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading settings from {path}: {e}")
        return settings

    if not isinstance(data, dict):
        logger.error(f"Ignoring settings file {path}: expected a JSON object")
        return settings

    for field in fields(Settings):
        if field.name in data and data[field.name] is not None:
            setattr(settings, field.name, data[field.name])

    try:
        settings.debounce_seconds = float(settings.debounce_seconds)
    except (TypeError, ValueError):
        logger.warning(f"Invalid debounce_seconds {settings.debounce_seconds!r}; using 2.0")
        settings.debounce_seconds = 2.0

    return settings


def save_settings(settings: Settings, path: Optional[str] = None) -> bool:
    """Save settings to file."""
    try:
        if path is None:
            ensure_lnshot_dir()
            path = SETTINGS_PATH
        else:
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, 'w') as f:
            json.dump(asdict(settings), f, indent=2)
        logger.info(f"Saved settings to {path}")
        return True
    except OSError as e:
        logger.error(f"Error saving settings: {e}")
        return False

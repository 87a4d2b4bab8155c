"""Configuration module for Convenient_CF."""

import os
import logging
from typing import Dict, List, Optional

DEFAULT_CONFIG_PATH = "./config.ini"

# Hard-coded defaults; values read from the config file are layered on top
DEFAULT_SETTINGS: Dict[str, str] = {
    "full_output": "false",  # Print the whole ffmpeg transcript after a run
    "ffmpeg_path": "ffmpeg",
    "auto_overwrite": "true",  # Answer ffmpeg's overwrite prompt with "y"
    "console_encoding": "utf-8",
    "log_level": "INFO",
}

_TRUE_VALUES = ("true", "1", "yes", "on")
_COMMENT_PREFIXES = ("#", ";")


class Settings:
    """String key/value settings with typed accessors."""

    def __init__(self, values: Optional[Dict[str, str]] = None, path: Optional[str] = None):
        self.path = path or DEFAULT_CONFIG_PATH
        self.defaults = dict(DEFAULT_SETTINGS)
        self._values = dict(self.defaults)
        if values:
            self._values.update(values)

    def get_string(self, key: str, default: str = "") -> str:
        return self._values.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        try:
            return int(self._values[key])
        except (KeyError, ValueError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        try:
            return float(self._values[key])
        except (KeyError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        if key not in self._values:
            return default
        return self._values[key].strip().lower() in _TRUE_VALUES

    def set_string(self, key: str, value: str) -> None:
        self._values[key] = value

    def set_int(self, key: str, value: int) -> None:
        self._values[key] = str(value)

    def set_float(self, key: str, value: float) -> None:
        self._values[key] = str(value)

    def set_bool(self, key: str, value: bool) -> None:
        self._values[key] = "true" if value else "false"

    def has_key(self, key: str) -> bool:
        return key in self._values

    def remove_key(self, key: str) -> bool:
        """Delete a setting; returns False if it did not exist."""
        return self._values.pop(key, None) is not None

    def keys(self) -> List[str]:
        return sorted(self._values)

    def restore_defaults(self) -> None:
        self._values = dict(self.defaults)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)


def parse_settings(text: str) -> Dict[str, str]:
    """
    Parse INI-style "key = value" lines.

    Blank lines, comments and lines without "=" are skipped. Later keys
    override earlier ones.
    """
    values = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(_COMMENT_PREFIXES):
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        values[key] = value.strip()
    return values


def load_settings(config_path: str = None) -> Settings:
    """Load settings from an INI-style file, creating it with defaults if missing."""
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    if not os.path.exists(config_path):
        logging.warning(
            f"Config file not found at {config_path}, using default settings"
        )
        settings = Settings(path=config_path)
        try:
            save_settings(settings, config_path)
        except OSError as e:
            logging.error(f"Could not create config file {config_path}: {e}")
        return settings

    with open(config_path, "r", encoding="utf-8") as f:
        values = parse_settings(f.read())

    return Settings(values, path=config_path)


def save_settings(settings: Settings, config_path: str = None) -> None:
    """Save settings to an INI-style file."""
    if config_path is None:
        config_path = settings.path

    config_dir = os.path.dirname(config_path)
    if config_dir and not os.path.exists(config_dir):
        os.makedirs(config_dir, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        f.write("# Convenient_CF configuration\n")
        f.write("# Generated automatically\n\n")
        for key in settings.keys():
            f.write(f"{key} = {settings.get_string(key)}\n")

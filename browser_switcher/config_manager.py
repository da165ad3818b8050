"""
Config Manager: Program settings with JSON I/O

Holds the settings dict and provides:
- Defaults for the external commands, GSettings key and watched file
- JSON load/save to disk
- Validation before the settings are used

The default browser itself is never stored here; the OS default-apps
configuration is the only source of truth for it.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from browser_switcher.desktop_scanner import default_search_dirs

logger = logging.getLogger(__name__)

CONFIG_VERSION = 1

USER_CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
DEFAULT_CONFIG_DIR = USER_CONFIG_DIR / "browser-switcher"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"

# Rewritten by xdg-settings when the default browser changes
DEFAULT_MIMEAPPS_PATH = USER_CONFIG_DIR / "mimeapps.list"

# External commands (argv lists, never run through a shell)
DEFAULT_QUERY_COMMAND = ["xdg-settings", "get", "default-web-browser"]
DEFAULT_SET_COMMAND = ["xdg-settings", "set", "default-web-browser"]  # id appended

# GSettings fallback for the default browser
DEFAULT_SETTINGS_SCHEMA = "org.gnome.desktop.default-applications.web"
DEFAULT_SETTINGS_KEY = "browser"

DEFAULT_COMMAND_TIMEOUT = 5.0  # seconds

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def make_default_config() -> Dict[str, Any]:
    """Return a fresh settings dict with every key at its default."""
    return {
        "version": CONFIG_VERSION,
        "search_dirs": default_search_dirs(),
        "mimeapps_path": str(DEFAULT_MIMEAPPS_PATH),
        "query_command": list(DEFAULT_QUERY_COMMAND),
        "set_command": list(DEFAULT_SET_COMMAND),
        "settings_schema": DEFAULT_SETTINGS_SCHEMA,
        "settings_key": DEFAULT_SETTINGS_KEY,
        "command_timeout": DEFAULT_COMMAND_TIMEOUT,
        "log_level": "INFO",
    }


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


class ConfigManager:
    """Manages program settings and JSON file I/O"""

    def __init__(self):
        self.config: Dict[str, Any] = {}
        self.new_config()

    def new_config(self) -> None:
        """Reset to default settings"""
        self.config = make_default_config()

    def load_json_file(self, path: str) -> bool:
        """
        Load settings from a JSON file on top of the defaults.

        Unknown keys are dropped. On any failure the previous settings are
        kept and False is returned.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not load config %s: %s", path, e)
            return False

        if not isinstance(data, dict):
            logger.warning("Config %s: top level must be an object", path)
            return False

        candidate = make_default_config()
        for key in candidate:
            if key in data:
                candidate[key] = data[key]

        previous = self.config
        self.config = candidate
        valid, error = self.validate()
        if not valid:
            logger.warning("Config %s rejected: %s", path, error)
            self.config = previous
            return False

        # Allow "~" in user supplied paths
        self.config["search_dirs"] = [os.path.expanduser(d) for d in self.config["search_dirs"]]
        self.config["mimeapps_path"] = os.path.expanduser(self.config["mimeapps_path"])
        logger.info("Loaded config from %s", path)
        return True

    def save_json_file(self, path: str) -> bool:
        """Save settings to a JSON file, creating its directory."""
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.to_json())
            return True
        except OSError as e:
            logger.error("Could not save config %s: %s", path, e)
            return False

    def to_json(self) -> str:
        """Serialize settings to a JSON string"""
        return json.dumps(self.config, indent=2)

    def get(self, key: str) -> Any:
        return self.config[key]

    @property
    def search_dirs(self) -> List[str]:
        return list(self.config["search_dirs"])

    @property
    def mimeapps_path(self) -> str:
        return self.config["mimeapps_path"]

    @property
    def log_level(self) -> str:
        return self.config["log_level"].upper()

    def validate(self) -> tuple[bool, str]:
        """Validate settings. Returns (is_valid, error_message)."""
        if not _is_str_list(self.config.get("search_dirs")):
            return False, "search_dirs must be a list of strings"

        mimeapps_path = self.config.get("mimeapps_path")
        if not isinstance(mimeapps_path, str) or not mimeapps_path:
            return False, "mimeapps_path must be a non-empty string"

        for key in ("query_command", "set_command"):
            cmd = self.config.get(key)
            if not _is_str_list(cmd) or not cmd:
                return False, f"{key} must be a non-empty list of strings"

        for key in ("settings_schema", "settings_key"):
            if not isinstance(self.config.get(key), str):
                return False, f"{key} must be a string"

        timeout = self.config.get("command_timeout")
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            return False, "command_timeout must be a positive number"

        level = self.config.get("log_level")
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            return False, f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}"

        return True, ""


# Singleton instance
_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get or create singleton ConfigManager, loading the user's config file"""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
        if DEFAULT_CONFIG_PATH.is_file():
            _manager.load_json_file(str(DEFAULT_CONFIG_PATH))
    return _manager

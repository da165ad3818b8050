"""
Default Resolver: Query and set the default web browser via xdg-settings.

Reading tries xdg-settings first and falls back to the GNOME
default-applications GSettings key. Setting goes through xdg-settings only
and runs in a worker thread so the event loop stays responsive.
"""

import asyncio
import logging
import subprocess
from typing import List, Sequence

from browser_switcher.config_manager import (
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_QUERY_COMMAND,
    DEFAULT_SET_COMMAND,
    DEFAULT_SETTINGS_KEY,
    DEFAULT_SETTINGS_SCHEMA,
)

logger = logging.getLogger(__name__)


def _unquote_gvariant(value: str) -> str:
    """Strip the quotes gsettings puts around string values."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


class DefaultBrowserResolver:
    """Wraps xdg-settings/gsettings for default browser lookup and changes."""

    def __init__(
        self,
        query_command: Sequence[str] = DEFAULT_QUERY_COMMAND,
        set_command: Sequence[str] = DEFAULT_SET_COMMAND,
        settings_schema: str = DEFAULT_SETTINGS_SCHEMA,
        settings_key: str = DEFAULT_SETTINGS_KEY,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ):
        self._query_command: List[str] = list(query_command)
        self._set_command: List[str] = list(set_command)
        self._settings_schema = settings_schema
        self._settings_key = settings_key
        self._timeout = timeout

    @classmethod
    def from_config(cls, config_manager) -> "DefaultBrowserResolver":
        return cls(
            query_command=config_manager.get("query_command"),
            set_command=config_manager.get("set_command"),
            settings_schema=config_manager.get("settings_schema"),
            settings_key=config_manager.get("settings_key"),
            timeout=config_manager.get("command_timeout"),
        )

    def resolve(self) -> str | None:
        """Return the current default browser id, or None if unknown."""
        browser_id = self._query_primary()
        if browser_id:
            return browser_id

        browser_id = self._query_settings()
        if browser_id:
            return browser_id

        logger.debug("Default browser could not be determined")
        return None

    def _query_primary(self) -> str | None:
        try:
            result = subprocess.run(
                self._query_command,
                capture_output=True, text=True, timeout=self._timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
            logger.debug("%s failed: %s", self._query_command[0], e)
            return None

        if result.returncode != 0:
            logger.debug("%s exited with %d: %s", self._query_command[0],
                         result.returncode, result.stderr.strip())
            return None
        return result.stdout.strip() or None

    def _query_settings(self) -> str | None:
        if not self._settings_schema or not self._settings_key:
            return None
        try:
            result = subprocess.run(
                ["gsettings", "get", self._settings_schema, self._settings_key],
                capture_output=True, text=True, timeout=self._timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
            logger.debug("GSettings fallback failed: %s", e)
            return None

        if result.returncode != 0:
            logger.debug("GSettings fallback failed: %s", result.stderr.strip())
            return None
        return _unquote_gvariant(result.stdout) or None

    async def set_default(self, browser_id: str | None) -> bool:
        """Make browser_id the default browser.

        Returns True once the set command has exited successfully. Never
        raises for command failures; they are logged and reported as False.
        """
        if not browser_id:
            logger.error("Invalid browser id: %r", browser_id)
            return False

        cmd = self._set_command + [browser_id]
        try:
            result = await asyncio.to_thread(
                subprocess.run, cmd,
                capture_output=True, text=True, timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error("Setting default browser to %s timed out after %ss",
                         browser_id, self._timeout)
            return False
        except FileNotFoundError:
            logger.error("%s not found, cannot set default browser", cmd[0])
            return False
        except OSError as e:
            logger.error("Failed to set default browser: %s", e)
            return False

        if result.returncode != 0:
            stderr = result.stderr.strip() or result.stdout.strip()
            logger.error("Failed to set default browser to %s: %s", browser_id, stderr)
            return False

        logger.info("Set default browser to %s", browser_id)
        return True

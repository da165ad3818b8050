"""
Browser Manager: Installed browser registry and default browser tracking.

Owns the scanned browser list and the cached default browser id, sets the
default through DefaultBrowserResolver and fans change notifications out to
registered listeners (tray icon, menu). External changes are picked up by a
ChangeWatcher on mimeapps.list, started on the first listener registration.
"""

import itertools
import logging
from typing import Callable, Dict, Iterable, List, Optional

from browser_switcher.change_watcher import ChangeWatcher
from browser_switcher.config_manager import get_config_manager
from browser_switcher.default_resolver import DefaultBrowserResolver
from browser_switcher.desktop_scanner import Browser, scan_browsers

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str], None]


class BrowserManager:
    """Browser detection, default browser management and change monitoring."""

    def __init__(
        self,
        search_dirs: Optional[Iterable[str]] = None,
        resolver: Optional[DefaultBrowserResolver] = None,
        watcher: Optional[ChangeWatcher] = None,
    ):
        if search_dirs is None or resolver is None or watcher is None:
            config = get_config_manager()
            if search_dirs is None:
                search_dirs = config.search_dirs
            if resolver is None:
                resolver = DefaultBrowserResolver.from_config(config)
            if watcher is None:
                watcher = ChangeWatcher(config.mimeapps_path)

        self._resolver = resolver
        self._watcher = watcher
        self._listeners: Dict[int, ChangeListener] = {}
        self._tokens = itertools.count(1)
        self._watch_started = False
        self._destroyed = False

        self._browsers: List[Browser] = scan_browsers(search_dirs)
        self._current_default: Optional[str] = None
        self.get_current_default_browser()

    def get_installed_browsers(self) -> List[Browser]:
        """Browsers found at construction, in priority order."""
        return list(self._browsers)

    def get_browser(self, browser_id: Optional[str]) -> Optional[Browser]:
        """Look up an installed browser by id."""
        if not browser_id:
            return None
        return next((b for b in self._browsers if b.id == browser_id), None)

    def get_cached_default_browser(self) -> Optional[str]:
        """Last known default browser id. Never blocks."""
        return self._current_default

    def get_current_default_browser(self) -> Optional[str]:
        """Resolve the default browser now and refresh the cache.

        Returns None if it cannot be determined; the cache then keeps its
        previous value.
        """
        browser_id = self._resolver.resolve()
        if browser_id:
            self._current_default = browser_id
        return browser_id

    async def set_default_browser(self, browser_id: Optional[str]) -> bool:
        """Set the default browser. Listeners are notified on success only."""
        if not await self._resolver.set_default(browser_id):
            return False

        # A destroyed manager keeps no cached state
        if not self._destroyed:
            self._current_default = browser_id
        self._notify_change(browser_id)
        return True

    def watch_default_browser(self, listener: ChangeListener) -> Optional[int]:
        """Register a listener called with the new id on every change.

        Returns a token for unwatch(), or None if listener is not callable.
        The file watch is started on first use regardless.
        """
        token = None
        if callable(listener):
            token = next(self._tokens)
            self._listeners[token] = listener
        else:
            logger.warning("Ignoring non-callable listener %r", listener)

        if not self._watch_started and not self._destroyed:
            self._watch_started = True
            self._watcher.start(self._on_browser_config_changed)

        return token

    def unwatch(self, token: Optional[int]) -> bool:
        """Remove a listener registered with watch_default_browser()."""
        return self._listeners.pop(token, None) is not None

    def _on_browser_config_changed(self, path: str = "") -> None:
        if self._destroyed:
            return

        previous = self._current_default
        new_default = self._resolver.resolve()

        if new_default and new_default != previous:
            logger.info("Default browser changed from %s to %s", previous, new_default)
            self._current_default = new_default
            self._notify_change(new_default)

    def _notify_change(self, browser_id: str) -> None:
        # Copy so listeners may unwatch while being notified
        for listener in list(self._listeners.values()):
            try:
                listener(browser_id)
            except Exception:
                logger.exception("Browser change listener %r failed", listener)

    def destroy(self) -> None:
        """Release the file watch and drop all state. Idempotent."""
        self._destroyed = True
        self._watcher.stop()
        self._listeners.clear()
        self._browsers = []
        self._current_default = None

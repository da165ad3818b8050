"""
Change Watcher: Observe mimeapps.list for external default browser changes.

Wraps a QFileSystemWatcher on a single file. Events are delivered by the
Qt event loop on the thread that called start().
"""

import logging
import os
from typing import Callable, Optional

from PySide6.QtCore import QFileSystemWatcher

from browser_switcher.config_manager import DEFAULT_MIMEAPPS_PATH

logger = logging.getLogger(__name__)


class ChangeWatcher:
    """Watches one configuration file and reports modifications."""

    def __init__(self, path: str = str(DEFAULT_MIMEAPPS_PATH)):
        self._path = os.path.abspath(path)
        self._watcher: Optional[QFileSystemWatcher] = None
        self._callback: Optional[Callable[[str], None]] = None

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_watching(self) -> bool:
        return self._watcher is not None

    def start(self, on_file_changed: Callable[[str], None]) -> bool:
        """Begin watching. Returns True if a watch is active afterwards.

        Calling start() while already watching keeps the existing watch.
        """
        if self._watcher is not None:
            return True

        watcher = QFileSystemWatcher()
        if not watcher.addPath(self._path):
            logger.warning("Could not watch %s, default browser changes made "
                           "by other programs will not be picked up", self._path)
            watcher.deleteLater()
            return False

        watcher.fileChanged.connect(self._on_file_changed)
        self._watcher = watcher
        self._callback = on_file_changed
        logger.info("Watching %s for default browser changes", self._path)
        return True

    def stop(self) -> None:
        """Remove the watch. Safe to call when not watching."""
        watcher, self._watcher = self._watcher, None
        self._callback = None
        if watcher is None:
            return
        watcher.fileChanged.disconnect(self._on_file_changed)
        if watcher.files():
            watcher.removePaths(watcher.files())
        watcher.deleteLater()
        logger.debug("Stopped watching %s", self._path)

    def _on_file_changed(self, path: str) -> None:
        if self._watcher is None or self._callback is None:
            return

        # Files replaced by rename drop out of the watch list
        if path not in self._watcher.files() and os.path.exists(path):
            self._watcher.addPath(path)

        self._callback(path)

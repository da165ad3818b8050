"""
Browser Indicator: Tray icon showing the current default browser.

Holds no state of its own; the icon and tooltip are derived from the
BrowserManager snapshot and refreshed through on_change().
"""

import logging
import os

from PySide6.QtGui import QIcon
from PySide6.QtWidgets import QSystemTrayIcon

from browser_switcher.desktop_scanner import FALLBACK_ICON

APP_TITLE = "Browser Switcher"


def icon_for_name(icon_name: str) -> QIcon:
    """Load a freedesktop icon name or icon file, falling back to web-browser."""
    fallback = QIcon.fromTheme(FALLBACK_ICON)
    if not icon_name:
        return fallback

    if os.path.isabs(icon_name):
        icon = QIcon(icon_name)
    else:
        icon = QIcon.fromTheme(icon_name)

    if icon.isNull():
        logging.debug("Icon %s not found, using %s", icon_name, FALLBACK_ICON)
        return fallback
    return icon


class BrowserIndicator:
    """System tray icon that follows the default browser."""

    def __init__(self, browser_manager, parent=None):
        self._browser_manager = browser_manager

        self.tray = QSystemTrayIcon(parent)
        self.on_change(self._browser_manager.get_cached_default_browser())

    def on_change(self, browser_id):
        """Update icon and tooltip for the new default browser."""
        browser = self._browser_manager.get_browser(browser_id)
        if browser is None:
            self.tray.setIcon(icon_for_name(FALLBACK_ICON))
            self.tray.setToolTip(f"{APP_TITLE} - default browser unknown")
            return

        self.tray.setIcon(icon_for_name(browser.icon))
        self.tray.setToolTip(f"{APP_TITLE} - {browser.name}")

    def show_error(self, title: str, message: str):
        self.tray.showMessage(title, message, QSystemTrayIcon.Warning)

    def show(self):
        self.tray.show()

    def hide(self):
        self.tray.hide()

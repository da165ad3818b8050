"""
Browser Switcher Tray Application

Single PySide6 process with QSystemTrayIcon. The tray icon shows the
current default browser; the tray menu lists installed browsers to switch
to, toggles autostart and quits. Switching runs as an asyncio task on the
Qt event loop (see switcher_tray.main).
"""

import asyncio
import logging
import sys

from PySide6.QtWidgets import QApplication, QMenu

from browser_switcher.browser_manager import BrowserManager
from browser_switcher.config_manager import USER_CONFIG_DIR
from browser_switcher.ui.indicator import APP_TITLE, BrowserIndicator
from browser_switcher.ui.menu_builder import MenuBuilder

# XDG autostart paths
AUTOSTART_DIR = USER_CONFIG_DIR / "autostart"
DESKTOP_FILE_NAME = "browser-switcher.desktop"


class BrowserSwitcherTray(QApplication):
    """System tray application for switching the default browser."""

    def __init__(self, argv, browser_manager=None):
        super().__init__(argv)
        self.setQuitOnLastWindowClosed(False)
        self.setApplicationName(APP_TITLE)

        self._manager = browser_manager or BrowserManager()
        self._pending = set()  # running switch tasks

        # Tray icon
        self._indicator = BrowserIndicator(self._manager, self)

        # Tray menu
        self._menu = QMenu()
        self._menu_builder = MenuBuilder(self._menu, self._manager, self._on_browser_selected)

        self._menu.addSeparator()

        self._autostart_action = self._menu.addAction("Autostart")
        self._autostart_action.setCheckable(True)
        self._autostart_action.setChecked(self._is_autostart_enabled())
        self._autostart_action.triggered.connect(self._on_toggle_autostart)

        self._menu.addSeparator()

        quit_action = self._menu.addAction("Quit")
        quit_action.triggered.connect(self._on_quit)

        self._indicator.tray.setContextMenu(self._menu)

        # Follow default browser changes, ours and other programs'
        self._watch_tokens = [
            self._manager.watch_default_browser(self._indicator.on_change),
            self._manager.watch_default_browser(self._menu_builder.on_change),
        ]

        self._indicator.show()

    def _on_browser_selected(self, browser_id):
        if browser_id == self._manager.get_cached_default_browser():
            return
        task = asyncio.ensure_future(self._switch_to(browser_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _switch_to(self, browser_id):
        if await self._manager.set_default_browser(browser_id):
            return
        self._indicator.show_error(
            "Failed to switch browser",
            "Could not change the default browser. Check the logs for details.",
        )

    def _on_toggle_autostart(self, checked):
        desktop_dst = AUTOSTART_DIR / DESKTOP_FILE_NAME

        if checked:
            AUTOSTART_DIR.mkdir(parents=True, exist_ok=True)
            desktop_dst.write_text(
                f"[Desktop Entry]\n"
                f"Type=Application\n"
                f"Name={APP_TITLE}\n"
                f"Exec={sys.executable} -m browser_switcher.switcher_tray\n"
                f"Icon=web-browser\n"
                f"Categories=Utility;\n"
                f"StartupNotify=false\n"
                f"X-GNOME-Autostart-enabled=true\n"
            )
            logging.info("Autostart enabled: %s", desktop_dst)
        else:
            if desktop_dst.is_file():
                desktop_dst.unlink()
            logging.info("Autostart disabled")

    def _is_autostart_enabled(self):
        return (AUTOSTART_DIR / DESKTOP_FILE_NAME).is_file()

    def _on_quit(self):
        """Clean shutdown."""
        for token in self._watch_tokens:
            self._manager.unwatch(token)
        self._manager.destroy()
        self._indicator.hide()
        self.quit()

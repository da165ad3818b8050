"""
Menu Builder: Tray menu for picking the default browser.

One checkable action per installed browser, in scan order, with the
current default checked. Selection is reported through a callback; the
check only moves when the manager reports the change.
"""

from typing import Callable, Dict, Optional

from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import QMenu

from browser_switcher.ui.indicator import icon_for_name


class MenuBuilder:
    """Builds and updates the browser section of a QMenu."""

    def __init__(self, menu: QMenu, browser_manager,
                 on_selected: Optional[Callable[[str], None]] = None):
        self._menu = menu
        self._browser_manager = browser_manager
        self._on_selected = on_selected
        self._actions: Dict[str, QAction] = {}

        self._group = QActionGroup(menu)
        self._group.setExclusive(True)

        self.build_menu()

    def build_menu(self):
        """Add one action per browser to the menu."""
        browsers = self._browser_manager.get_installed_browsers()
        current = self._browser_manager.get_cached_default_browser()

        if not browsers:
            item = self._menu.addAction("No browsers found")
            item.setEnabled(False)
            return

        for browser in browsers:
            action = QAction(icon_for_name(browser.icon), browser.name, self._menu)
            action.setCheckable(True)
            action.setChecked(browser.id == current)
            action.setToolTip(browser.exec_path)
            # Bind id now; triggered passes the checked state
            action.triggered.connect(lambda _checked=False, bid=browser.id: self._on_triggered(bid))
            self._group.addAction(action)
            self._menu.addAction(action)
            self._actions[browser.id] = action

    def _on_triggered(self, browser_id: str):
        # Keep the check on the real default until the switch succeeds
        self.on_change(self._browser_manager.get_cached_default_browser())
        if self._on_selected is not None:
            self._on_selected(browser_id)

    def on_change(self, browser_id):
        """Move the check mark to browser_id."""
        action = self._actions.get(browser_id)
        if action is not None:
            action.setChecked(True)
            return
        # Unknown id: clear all checks
        self._group.setExclusive(False)
        for a in self._actions.values():
            a.setChecked(False)
        self._group.setExclusive(True)

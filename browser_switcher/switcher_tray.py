#!/usr/bin/env python3
"""Browser Switcher - system tray app.

Shows the current default web browser in the system tray. Pick another
browser from the tray menu to make it the default.

One-shot modes work without a tray:

    browser-switcher --list          # installed browsers, default marked
    browser-switcher --get           # current default browser id
    browser-switcher --set ID        # make ID the default
    browser-switcher --write-config  # save current settings for editing
"""

import argparse
import asyncio
import logging
import sys

from browser_switcher.browser_manager import BrowserManager
from browser_switcher.config_manager import DEFAULT_CONFIG_PATH, get_config_manager


def _print_browsers(manager):
    current = manager.get_cached_default_browser()
    browsers = manager.get_installed_browsers()
    if not browsers:
        print("No browsers found")
        return
    for browser in browsers:
        marker = "*" if browser.id == current else " "
        print(f"{marker} {browser.id:<40} {browser.name}")


def _run_tray():
    from PySide6 import QtAsyncio

    from browser_switcher.tray_app import BrowserSwitcherTray

    app = BrowserSwitcherTray(sys.argv)
    QtAsyncio.run()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Switch the default web browser")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--list", action="store_true",
                       help="List installed browsers and exit")
    group.add_argument("--get", action="store_true",
                       help="Print the current default browser id and exit")
    group.add_argument("--set", metavar="ID",
                       help="Set the default browser (e.g. firefox.desktop) and exit")
    group.add_argument("--write-config", action="store_true",
                       help=f"Write the current settings to {DEFAULT_CONFIG_PATH} and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    config = get_config_manager()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else config.log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.write_config:
        if not config.save_json_file(str(DEFAULT_CONFIG_PATH)):
            return 1
        print(DEFAULT_CONFIG_PATH)
        return 0

    if args.list or args.get or args.set is not None:
        manager = BrowserManager()
        try:
            if args.list:
                _print_browsers(manager)
                return 0
            if args.get:
                browser_id = manager.get_cached_default_browser()
                if browser_id is None:
                    print("Default browser unknown", file=sys.stderr)
                    return 1
                print(browser_id)
                return 0
            ok = asyncio.run(manager.set_default_browser(args.set))
            return 0 if ok else 1
        finally:
            manager.destroy()

    logging.info("Browser Switcher starting...")
    _run_tray()
    logging.info("Browser Switcher stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Desktop Scanner: Discover installed web browsers from .desktop files.

Scans the XDG application directories for .desktop entries whose
Categories include WebBrowser and extracts name/icon/exec. The result is
deduplicated by descriptor file name and by executable, first found wins,
so the directory order decides which copy of a browser is kept.
"""

import configparser
import glob
import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

DESKTOP_ENTRY_GROUP = "Desktop Entry"
BROWSER_CATEGORY = "WebBrowser"
FALLBACK_ICON = "web-browser"  # freedesktop generic browser icon


@dataclass(frozen=True)
class Browser:
    """Represents an installed web browser."""
    id: str           # descriptor file name (e.g., "firefox.desktop")
    name: str
    icon: str         # freedesktop icon name or absolute path
    exec_path: str    # first token of the Exec line
    source_path: str  # absolute path of the .desktop file


def default_search_dirs() -> List[str]:
    """Return the application directories in priority order.

    Site-wide entries come first so they win over copies in the user's
    own directory.
    """
    data_home = os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    return [
        "/usr/share/applications",
        "/usr/local/share/applications",
        os.path.join(data_home, "applications"),
    ]


def _entry_sort_key(path: str) -> str:
    # Sort on the stem so "firefox" comes before "firefox-dup"
    return os.path.splitext(os.path.basename(path))[0]


def _split_categories(value: str) -> List[str]:
    return [c.strip() for c in value.split(";") if c.strip()]


def parse_desktop_file(path: str) -> Optional[Browser]:
    """
    Parse one .desktop file into a Browser.

    Returns None when the entry is not a web browser, or when it cannot be
    used (unparsable file, missing Name or Exec). Only the latter cases are
    logged; non-browser entries are the common case and are skipped quietly.
    """
    cp = configparser.ConfigParser(interpolation=None, strict=False)
    cp.optionxform = str  # desktop entry keys are case sensitive

    try:
        with open(path, encoding="utf-8") as f:
            cp.read_file(f)
    except (configparser.Error, OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not parse %s: %s", path, exc)
        return None

    if not cp.has_section(DESKTOP_ENTRY_GROUP):
        return None
    entry = cp[DESKTOP_ENTRY_GROUP]

    categories = entry.get("Categories")
    if categories is None or BROWSER_CATEGORY not in _split_categories(categories):
        return None

    name = entry.get("Name", "").strip()
    exec_cmd = entry.get("Exec", "").strip()
    if not name or not exec_cmd:
        logger.warning("Skipping %s: missing Name or Exec", path)
        return None

    icon = entry.get("Icon", "").strip() or FALLBACK_ICON

    return Browser(
        id=os.path.basename(path),
        name=name,
        icon=icon,
        # Strip arguments and field codes (%u, %U, ...)
        exec_path=exec_cmd.split()[0],
        source_path=os.path.abspath(path),
    )


def scan_browsers(directories: Optional[Iterable[str]] = None) -> List[Browser]:
    """
    Scan directories for installed web browsers.

    Directories are walked in the given order (default_search_dirs() when
    omitted), files in name order (extension ignored) within each. A
    browser whose id or executable was already seen is dropped.
    """
    if directories is None:
        directories = default_search_dirs()

    browsers: List[Browser] = []

    for app_dir in directories:
        if not os.path.isdir(app_dir):
            logger.debug("Skipping missing application dir %s", app_dir)
            continue

        desktop_files = glob.glob(os.path.join(app_dir, "*.desktop"))
        for desktop_file in sorted(desktop_files, key=_entry_sort_key):
            if not os.path.isfile(desktop_file):
                continue

            browser = parse_desktop_file(desktop_file)
            if browser is None:
                continue

            existing = next(
                (b for b in browsers
                 if b.id == browser.id or b.exec_path == browser.exec_path),
                None,
            )
            if existing is not None:
                logger.info("Skipped duplicate: %s (%s), already have %s",
                            browser.name, browser.id, existing.id)
                continue

            browsers.append(browser)
            logger.info("Added browser: %s (%s) - %s",
                        browser.name, browser.id, browser.exec_path)

    logger.info("Found %d browsers", len(browsers))
    return browsers

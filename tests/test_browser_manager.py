"""Tests for the browser registry and default browser tracking."""

import asyncio

import pytest
from conftest import write_desktop

from browser_switcher.browser_manager import BrowserManager
from browser_switcher.default_resolver import DefaultBrowserResolver


class FakeResolver:
    def __init__(self, current=None, set_ok=True):
        self.current = current
        self.set_ok = set_ok
        self.resolve_calls = 0
        self.set_calls = []

    def resolve(self):
        self.resolve_calls += 1
        return self.current

    async def set_default(self, browser_id):
        self.set_calls.append(browser_id)
        if not browser_id or not self.set_ok:
            return False
        self.current = browser_id
        return True


class FakeWatcher:
    def __init__(self, can_watch=True):
        self.can_watch = can_watch
        self.start_calls = 0
        self.stop_calls = 0
        self.callback = None

    def start(self, on_file_changed):
        self.start_calls += 1
        if self.can_watch:
            self.callback = on_file_changed
        return self.can_watch

    def stop(self):
        self.stop_calls += 1

    def fire(self):
        # A stopped QFileSystemWatcher still lets a queued event through
        if self.callback is not None:
            self.callback("/home/user/.config/mimeapps.list")


@pytest.fixture
def apps_dir(tmp_path):
    d = tmp_path / "applications"
    write_desktop(d, "firefox.desktop", Name="Firefox", Exec="firefox %u",
                  Icon="firefox", Categories="Network;WebBrowser;")
    write_desktop(d, "firefox-dup.desktop", Name="Firefox Nightly",
                  Exec="firefox --new-instance", Categories="WebBrowser;")
    write_desktop(d, "chromium.desktop", Name="Chromium", Exec="chromium %U",
                  Categories="WebBrowser;")
    return d


@pytest.fixture
def resolver():
    return FakeResolver(current="firefox.desktop")


@pytest.fixture
def watcher():
    return FakeWatcher()


@pytest.fixture
def manager(apps_dir, resolver, watcher):
    m = BrowserManager(search_dirs=[str(apps_dir)], resolver=resolver, watcher=watcher)
    yield m
    m.destroy()


def test_scans_once_at_construction(manager):
    browsers = manager.get_installed_browsers()

    assert [b.id for b in browsers] == ["chromium.desktop", "firefox.desktop"]
    assert manager.get_browser("firefox.desktop").name == "Firefox"
    assert manager.get_browser("firefox-dup.desktop") is None
    assert manager.get_browser(None) is None


def test_initial_default_is_resolved(manager, resolver):
    assert resolver.resolve_calls == 1
    assert manager.get_cached_default_browser() == "firefox.desktop"


def test_unknown_default_at_start(apps_dir, watcher):
    m = BrowserManager(search_dirs=[str(apps_dir)], resolver=FakeResolver(None),
                       watcher=watcher)
    assert m.get_cached_default_browser() is None


def test_cached_read_does_not_resolve(manager, resolver):
    resolver.current = "chromium.desktop"

    for _ in range(3):
        assert manager.get_cached_default_browser() == "firefox.desktop"
    assert resolver.resolve_calls == 1


def test_current_default_refreshes_cache(manager, resolver):
    resolver.current = "chromium.desktop"

    assert manager.get_current_default_browser() == "chromium.desktop"
    assert manager.get_cached_default_browser() == "chromium.desktop"


def test_failed_resolution_keeps_cache(manager, resolver):
    resolver.current = None

    assert manager.get_current_default_browser() is None
    assert manager.get_cached_default_browser() == "firefox.desktop"


def test_set_default_notifies_each_listener_once(manager):
    first, second = [], []
    manager.watch_default_browser(first.append)
    manager.watch_default_browser(second.append)

    assert asyncio.run(manager.set_default_browser("chromium.desktop")) is True

    assert manager.get_cached_default_browser() == "chromium.desktop"
    assert first == ["chromium.desktop"]
    assert second == ["chromium.desktop"]


def test_listeners_run_in_registration_order(manager):
    order = []
    manager.watch_default_browser(lambda bid: order.append("indicator"))
    manager.watch_default_browser(lambda bid: order.append("menu"))

    asyncio.run(manager.set_default_browser("chromium.desktop"))

    assert order == ["indicator", "menu"]


def test_failed_set_leaves_state_untouched(apps_dir, watcher):
    resolver = FakeResolver(current="firefox.desktop", set_ok=False)
    m = BrowserManager(search_dirs=[str(apps_dir)], resolver=resolver, watcher=watcher)
    events = []
    m.watch_default_browser(events.append)

    assert asyncio.run(m.set_default_browser("chromium.desktop")) is False

    assert m.get_cached_default_browser() == "firefox.desktop"
    assert events == []


def test_empty_id_never_runs_a_command(apps_dir, watcher, fake_run):
    m = BrowserManager(search_dirs=[str(apps_dir)], resolver=DefaultBrowserResolver(),
                       watcher=watcher)
    fake_run.calls.clear()

    assert asyncio.run(m.set_default_browser("")) is False
    assert asyncio.run(m.set_default_browser(None)) is False
    assert fake_run.calls == []


def test_failing_listener_does_not_stop_fan_out(manager, caplog):
    received = []

    def broken(browser_id):
        raise RuntimeError("render failed")

    manager.watch_default_browser(broken)
    manager.watch_default_browser(received.append)

    assert asyncio.run(manager.set_default_browser("chromium.desktop")) is True

    assert received == ["chromium.desktop"]
    assert "render failed" in caplog.text


def test_watcher_started_once(manager, watcher):
    manager.watch_default_browser(lambda bid: None)
    manager.watch_default_browser(lambda bid: None)
    manager.watch_default_browser(lambda bid: None)

    assert watcher.start_calls == 1


def test_watch_failure_is_not_retried(apps_dir, resolver):
    watcher = FakeWatcher(can_watch=False)
    m = BrowserManager(search_dirs=[str(apps_dir)], resolver=resolver, watcher=watcher)

    assert m.watch_default_browser(lambda bid: None) is not None
    m.watch_default_browser(lambda bid: None)

    assert watcher.start_calls == 1
    assert m.get_cached_default_browser() == "firefox.desktop"


def test_non_callable_listener_is_ignored(manager, watcher):
    assert manager.watch_default_browser("not a function") is None
    assert watcher.start_calls == 1
    assert asyncio.run(manager.set_default_browser("chromium.desktop")) is True


def test_external_change_notifies(manager, resolver, watcher):
    events = []
    manager.watch_default_browser(events.append)

    resolver.current = "chromium.desktop"
    watcher.fire()

    assert events == ["chromium.desktop"]
    assert manager.get_cached_default_browser() == "chromium.desktop"


def test_same_default_does_not_notify(manager, watcher):
    events = []
    manager.watch_default_browser(events.append)

    watcher.fire()
    watcher.fire()

    assert events == []


def test_unresolvable_change_does_not_notify(manager, resolver, watcher):
    events = []
    manager.watch_default_browser(events.append)

    resolver.current = None
    watcher.fire()

    assert events == []
    assert manager.get_cached_default_browser() == "firefox.desktop"


def test_unwatch_removes_listener(manager, resolver, watcher):
    kept, dropped = [], []
    manager.watch_default_browser(kept.append)
    token = manager.watch_default_browser(dropped.append)

    assert manager.unwatch(token) is True
    assert manager.unwatch(token) is False

    resolver.current = "chromium.desktop"
    watcher.fire()

    assert kept == ["chromium.desktop"]
    assert dropped == []


def test_destroy_clears_state(manager, watcher):
    manager.watch_default_browser(lambda bid: None)

    manager.destroy()

    assert watcher.stop_calls == 1
    assert manager.get_installed_browsers() == []
    assert manager.get_cached_default_browser() is None


def test_destroy_is_idempotent(manager, watcher):
    manager.destroy()
    manager.destroy()

    assert manager.get_installed_browsers() == []


def test_change_after_destroy_is_noop(manager, resolver, watcher):
    events = []
    manager.watch_default_browser(events.append)
    manager.destroy()

    resolver.current = "chromium.desktop"
    watcher.fire()

    assert events == []
    assert manager.get_cached_default_browser() is None


def test_set_completing_after_destroy_reaches_nobody(manager):
    events = []
    manager.watch_default_browser(events.append)

    async def switch_during_destroy():
        task = asyncio.ensure_future(manager.set_default_browser("chromium.desktop"))
        manager.destroy()
        return await task

    assert asyncio.run(switch_during_destroy()) is True
    assert events == []
    assert manager.get_cached_default_browser() is None


def test_scenario_fallback_store(apps_dir, watcher, fake_run):
    fake_run.responses = {
        "xdg-settings": (0, ""),
        "gsettings": (0, "'chromium.desktop'\n"),
    }
    m = BrowserManager(search_dirs=[str(apps_dir)], resolver=DefaultBrowserResolver(),
                       watcher=watcher)

    assert m.get_current_default_browser() == "chromium.desktop"

import os
import subprocess

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


def write_desktop(directory, filename, **fields):
    """Write a .desktop file with the given [Desktop Entry] keys."""
    directory.mkdir(parents=True, exist_ok=True)
    lines = ["[Desktop Entry]", "Type=Application"]
    lines += [f"{key}={value}" for key, value in fields.items()]
    path = directory / filename
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class FakeRun:
    """Stands in for subprocess.run, answering by argv[0]."""

    def __init__(self, responses=None):
        # argv[0] -> (returncode, stdout) or an exception instance
        self.responses = responses or {}
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        response = self.responses.get(cmd[0], FileNotFoundError(cmd[0]))
        if isinstance(response, BaseException):
            raise response
        returncode, stdout = response
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")


@pytest.fixture
def fake_run(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake

"""Shared test fixtures for livefile."""

from __future__ import annotations

from pathlib import Path

import pytest

from livefile.config.models import LiveFileConfig


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self) -> None:
        self.error_callbacks: list = []
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def on_error(self, callback) -> None:
        self.error_callbacks.append(callback)

    def close(self) -> None:
        self.close_calls += 1

    def fail(self, error: BaseException) -> None:
        for callback in self.error_callbacks:
            callback(error)


class FakeWatcher:
    """Records start() calls and lets a test fire watch events directly."""

    def __init__(self, start_error: BaseException | None = None) -> None:
        self.start_error = start_error
        self.handle = FakeHandle()
        self.started: list[Path] = []
        self._on_event = None

    def start(self, path, on_event):
        self.started.append(path)
        if self.start_error is not None:
            raise self.start_error
        self._on_event = on_event
        return self.handle

    def trigger(self, event_type: str = "modified") -> None:
        if self.handle.closed:
            return
        self._on_event(event_type, "")


class FakeReader:
    """Holds read callbacks until the test completes them, in any order."""

    def __init__(self) -> None:
        self.pending: list = []
        self.shutdown_calls = 0

    def read(self, path, callback) -> None:
        self.pending.append(callback)

    def succeed(self, content: str, index: int = 0) -> None:
        self.pending.pop(index)(None, content)

    def fail(self, error: BaseException, index: int = 0) -> None:
        self.pending.pop(index)(error, None)

    def shutdown(self, wait: bool = False) -> None:
        self.shutdown_calls += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_watcher():
    return FakeWatcher()


@pytest.fixture
def fake_reader():
    return FakeReader()


@pytest.fixture
def sample_config():
    return LiveFileConfig()


@pytest.fixture
def sample_file(tmp_path):
    target = tmp_path / "page.html"
    target.write_text("<h1>hello</h1>", encoding="utf-8")
    return target


@pytest.fixture
def watcher_factory():
    return FakeWatcher

"""Tests for the watchdog-backed single-file watch subscription."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
)

from livefile.watch import FileWatcher, ObserverWatchHandle, _SingleFileHandler


# ── Helpers ──────────────────────────────────────────────────────────


def _handler(target: Path, events: list, handle: ObserverWatchHandle | None = None):
    handle = handle or ObserverWatchHandle(target)
    return _SingleFileHandler(target, lambda kind, path: events.append((kind, path)), handle), handle


def _wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return False


# ── Event filtering ──────────────────────────────────────────────────


class TestSingleFileHandler:
    def test_forwards_modification_of_target(self, tmp_path: Path):
        target = tmp_path / "page.html"
        events: list = []
        handler, _ = _handler(target, events)

        handler.on_any_event(FileModifiedEvent(str(target)))

        assert events == [("modified", handler._target)]

    def test_ignores_sibling_files(self, tmp_path: Path):
        target = tmp_path / "page.html"
        events: list = []
        handler, _ = _handler(target, events)

        handler.on_any_event(FileModifiedEvent(str(tmp_path / "other.html")))
        handler.on_any_event(FileCreatedEvent(str(tmp_path / "page.html.swp")))

        assert events == []

    def test_ignores_directory_events(self, tmp_path: Path):
        events: list = []
        handler, _ = _handler(tmp_path / "page.html", events)

        handler.on_any_event(DirModifiedEvent(str(tmp_path)))

        assert events == []

    def test_ignores_opened_events(self, tmp_path: Path):
        """Reading the file opens it; that must not count as a change."""
        target = tmp_path / "page.html"
        events: list = []
        handler, _ = _handler(target, events)

        handler.on_any_event(FileOpenedEvent(str(target)))

        assert events == []

    def test_rename_onto_target_is_forwarded(self, tmp_path: Path):
        """Editors that save via temp file + rename still trigger."""
        target = tmp_path / "page.html"
        events: list = []
        handler, _ = _handler(target, events)

        handler.on_any_event(FileMovedEvent(str(tmp_path / ".page.html.tmp"), str(target)))

        assert [kind for kind, _ in events] == ["moved"]

    def test_closed_handle_drops_events(self, tmp_path: Path):
        target = tmp_path / "page.html"
        events: list = []
        handler, handle = _handler(target, events)

        handle.close()
        handler.on_any_event(FileModifiedEvent(str(target)))

        assert events == []

    def test_callback_failure_is_bridged_to_error_callbacks(self, tmp_path: Path, caplog):
        target = tmp_path / "page.html"
        handle = ObserverWatchHandle(target)
        errors: list[BaseException] = []
        handle.on_error(errors.append)

        def explode(kind, path):
            raise RuntimeError("dispatch failed")

        handler = _SingleFileHandler(target, explode, handle)
        with caplog.at_level(logging.WARNING, logger="livefile.watch"):
            handler.on_any_event(FileModifiedEvent(str(target)))

        assert len(errors) == 1
        assert str(errors[0]) == "dispatch failed"
        assert any("Watch error" in rec.message for rec in caplog.records)


# ── FileWatcher ──────────────────────────────────────────────────────


class TestFileWatcher:
    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            FileWatcher().start(tmp_path / "nope.txt", lambda kind, path: None)

    def test_detects_writes(self, sample_file: Path):
        events: list = []
        handle = FileWatcher().start(sample_file, lambda kind, path: events.append(kind))
        try:
            time.sleep(0.3)
            sample_file.write_text("<h1>changed</h1>", encoding="utf-8")
            assert _wait_for(lambda: events), "no event for write to watched file"
        finally:
            handle.close()

    def test_close_is_idempotent_and_silences_events(self, sample_file: Path):
        events: list = []
        handle = FileWatcher().start(sample_file, lambda kind, path: events.append(kind))
        handle.close()
        handle.close()
        assert handle.closed

        sample_file.write_text("after close", encoding="utf-8")
        time.sleep(0.3)
        assert events == []

"""Single-file watch subscription backed by watchdog."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, str], None]
ErrorCallback = Callable[[BaseException], None]

# Opened and closed-without-write events are dropped; our own reads produce them.
_CHANGE_EVENTS = {
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
}


def _normalize(path: str | bytes) -> str:
    if isinstance(path, bytes):
        path = os.fsdecode(path)
    return os.path.normcase(os.path.abspath(path))


class WatchHandle(Protocol):
    """A live watch subscription owned by exactly one LiveFile."""

    @property
    def closed(self) -> bool: ...

    def on_error(self, callback: ErrorCallback) -> None: ...

    def close(self) -> None: ...


class Watcher(Protocol):
    """Starts watch subscriptions on a single file."""

    def start(self, path: Path, on_event: EventCallback) -> WatchHandle: ...


class _SingleFileHandler(FileSystemEventHandler):
    """Forwards events that touch one file and drops everything else in its directory.

    The file is matched on both ``src_path`` and ``dest_path`` so that editors
    saving through a temp file followed by a rename still produce a trigger.
    """

    def __init__(self, target: Path, on_event: EventCallback, handle: ObserverWatchHandle) -> None:
        super().__init__()
        self._target = _normalize(str(target))
        self._on_event = on_event
        self._handle = handle

    def _matches(self, event: FileSystemEvent) -> bool:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return False
        if _normalize(event.src_path) == self._target:
            return True
        dest = getattr(event, "dest_path", "")
        return bool(dest) and _normalize(dest) == self._target

    def on_any_event(self, event: FileSystemEvent) -> None:
        if self._handle.closed or not self._matches(event):
            return
        try:
            self._on_event(event.event_type, self._target)
        except Exception as e:
            self._handle._emit_error(e)


class ObserverWatchHandle:
    """Owns one watchdog Observer and releases it exactly once."""

    def __init__(self, path: Path, join_timeout: float = 5.0) -> None:
        self._path = path
        self._join_timeout = join_timeout
        self._lock = threading.Lock()
        self._error_callbacks: list[ErrorCallback] = []
        self._observer: Observer | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on_error(self, callback: ErrorCallback) -> None:
        """Register a callback for failures raised while dispatching watch events."""
        with self._lock:
            self._error_callbacks.append(callback)

    def _emit_error(self, error: BaseException) -> None:
        logger.warning("Watch error for %s: %s", self._path, error)
        with self._lock:
            callbacks = list(self._error_callbacks)
        for callback in callbacks:
            try:
                callback(error)
            except Exception:
                logger.exception("Watch error callback failed for %s", self._path)

    def _start(self, on_event: EventCallback) -> None:
        observer = Observer()
        observer.schedule(
            _SingleFileHandler(self._path, on_event, self),
            str(self._path.parent),
            recursive=False,
        )
        self._observer = observer
        try:
            observer.start()
        except Exception:
            self._observer = None
            raise
        logger.info("Watching %s for changes", self._path)

    def close(self) -> None:
        """Stop the observer. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        if observer.is_alive() and threading.current_thread() is not observer:
            observer.join(timeout=self._join_timeout)
        logger.info("Stopped watching %s", self._path)


class FileWatcher:
    """Watcher implementation that schedules a watchdog observer on the file's directory."""

    def __init__(self, join_timeout: float = 5.0) -> None:
        self._join_timeout = join_timeout

    def start(self, path: Path, on_event: EventCallback) -> ObserverWatchHandle:
        path = Path(path).resolve()
        if not path.is_file():
            raise FileNotFoundError(f"Cannot watch missing file: {path}")
        handle = ObserverWatchHandle(path, join_timeout=self._join_timeout)
        handle._start(on_event)
        return handle

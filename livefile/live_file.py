"""In-memory view of one file that reloads itself when the file changes."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from livefile.models import LiveFileEvent, RendererNotConfiguredError, UnsupportedEventError
from livefile.reader import FileReader, Reader
from livefile.watch import FileWatcher, Watcher, WatchHandle

if TYPE_CHECKING:
    from livefile.config.models import LiveFileConfig

logger = logging.getLogger(__name__)

Renderer = Callable[[str | None, dict], Any]
Handler = Callable[[Any], None]


def _noop(_payload: Any) -> None:
    return None


class LiveFile:
    """Caches a file's content and re-reads it on change, at most once per ``watcher_delay``.

    A watch trigger is accepted only when more than ``watcher_delay`` seconds
    have passed since the last accepted trigger. The timestamp moves when the
    trigger is accepted, not when its read finishes, so a slow read does not
    widen the window. Two accepted triggers can therefore have reads in flight
    at once and a slower, older read may land last. Pass ``single_flight=True``
    to queue at most one follow-up read behind the one in flight instead.

    Read and watch failures go to the ``error`` handler and leave ``content``
    untouched. Handlers can be given up front (``on_reload``/``on_error``)
    because the initial read may finish before the constructor returns.
    """

    def __init__(
        self,
        path: str | Path,
        watcher_delay: float = 0.25,
        renderer: Renderer | None = None,
        *,
        encoding: str = "utf-8",
        single_flight: bool = False,
        on_reload: Handler | None = None,
        on_error: Handler | None = None,
        watcher: Watcher | None = None,
        reader: Reader | None = None,
        read_workers: int = 2,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if watcher_delay < 0:
            raise ValueError(f"watcher_delay must be >= 0, got {watcher_delay}")
        if renderer is not None and not callable(renderer):
            raise TypeError("renderer must be callable as renderer(content, options)")

        self._path = Path(path).resolve()
        self._watcher_delay = watcher_delay
        self._renderer = renderer
        self._clock = clock
        self._single_flight = single_flight
        self._content: str | None = None
        self._lock = threading.Lock()
        self._handlers: dict[LiveFileEvent, Handler] = {
            LiveFileEvent.reload: _noop,
            LiveFileEvent.error: _noop,
        }
        if on_reload is not None:
            self.handle(LiveFileEvent.reload, on_reload)
        if on_error is not None:
            self.handle(LiveFileEvent.error, on_error)

        self._owns_reader = reader is None
        self._reader = reader if reader is not None else FileReader(encoding, read_workers)
        self._in_flight = 0
        self._pending = False
        self._destroyed = False
        self._handle: WatchHandle | None = None

        self._last_update = self._clock() - watcher_delay
        self._init_watcher(watcher if watcher is not None else FileWatcher())
        self.reload_content()

    @classmethod
    def from_config(
        cls,
        path: str | Path,
        config: LiveFileConfig,
        renderer: Renderer | None = None,
        **kwargs: Any,
    ) -> LiveFile:
        """Build a LiveFile using delay, encoding and read settings from *config*."""
        kwargs.setdefault("encoding", config.encoding)
        kwargs.setdefault("single_flight", config.single_flight)
        kwargs.setdefault("read_workers", config.read_workers)
        return cls(path, config.watcher_delay, renderer, **kwargs)

    # ── Accessors ────────────────────────────────────────────────────

    @property
    def path(self) -> Path:
        return self._path

    @property
    def content(self) -> str | None:
        return self._content

    @property
    def last_update(self) -> float:
        return self._last_update

    @property
    def watcher_delay(self) -> float:
        return self._watcher_delay

    @property
    def renderer(self) -> Renderer | None:
        return self._renderer

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def reads_in_flight(self) -> int:
        return self._in_flight

    # ── Public API ───────────────────────────────────────────────────

    def set_content(self, content: str | None) -> None:
        """Overwrite the cached content, e.g. after post-processing a reload."""
        self._content = content

    def set_renderer(self, renderer: Renderer) -> None:
        if not callable(renderer):
            raise TypeError(
                "set_renderer(renderer) -> renderer must be callable as renderer(content, options)"
            )
        self._renderer = renderer

    def render(self, options: dict | None = None) -> Any:
        """Run the current renderer over the cached content. Output is never cached."""
        renderer = self._renderer
        if renderer is None:
            raise RendererNotConfiguredError(self._path)
        return renderer(self._content, options if options is not None else {})

    def handle(self, event: str | LiveFileEvent, handler: Handler) -> LiveFile:
        """Bind *handler* to *event*, replacing any handler already bound to it."""
        try:
            kind = LiveFileEvent(event)
        except ValueError:
            raise UnsupportedEventError(event) from None
        if not callable(handler):
            raise TypeError(f"handler for {kind.value} must be callable")
        self._handlers[kind] = handler
        return self

    def should_accept_trigger(self, touch: bool = True) -> bool:
        """Debounce gate: True once more than ``watcher_delay`` has passed since the last accept."""
        with self._lock:
            now = self._clock()
            accepted = now - self._last_update > self._watcher_delay
            if accepted and touch:
                self._last_update = now
            return accepted

    def reload_content(self) -> None:
        """Re-read the file asynchronously, bypassing the debounce gate."""
        with self._lock:
            if self._destroyed:
                return
            if self._single_flight and self._in_flight:
                self._pending = True
                logger.debug("Read of %s already in flight, queued follow-up", self._path)
                return
            self._in_flight += 1
        logger.debug("Reading %s", self._path)
        try:
            self._reader.read(self._path, self._on_read)
        except Exception as e:
            self._on_read(e, None)

    def destroy(self) -> None:
        """Release the watch subscription and clear the cached content. Idempotent."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()
        if self._owns_reader:
            self._reader.shutdown(wait=False)
        self._content = ""

    def __enter__(self) -> LiveFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.destroy()

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else "live"
        return f"LiveFile(path={str(self._path)!r}, watcher_delay={self._watcher_delay}, {state})"

    # ── Internals ────────────────────────────────────────────────────

    def _init_watcher(self, watcher: Watcher) -> None:
        try:
            handle = watcher.start(self._path, self._on_watch_event)
        except OSError as e:
            logger.warning("Failed to watch %s: %s", self._path, e)
            self._emit(LiveFileEvent.error, e)
            return
        handle.on_error(self._on_watch_error)
        self._handle = handle

    def _on_watch_event(self, event_type: str, _path: str) -> None:
        if self._destroyed:
            return
        if self.should_accept_trigger():
            logger.debug("Accepted %s trigger for %s", event_type, self._path)
            self.reload_content()
        else:
            logger.debug("Debounced %s trigger for %s", event_type, self._path)

    def _on_watch_error(self, error: BaseException) -> None:
        if not self._destroyed:
            self._emit(LiveFileEvent.error, error)

    def _on_read(self, error: BaseException | None, content: str | None) -> None:
        with self._lock:
            self._in_flight = max(self._in_flight - 1, 0)
            follow_up = self._pending and not self._destroyed
            self._pending = False
            if self._destroyed:
                return
            if error is None:
                self._content = content

        if error is not None:
            logger.warning("Failed to read %s: %s", self._path, error)
            self._emit(LiveFileEvent.error, error)
        else:
            self._emit(LiveFileEvent.reload, content)

        if follow_up:
            self.reload_content()

    def _emit(self, event: LiveFileEvent, payload: Any) -> None:
        try:
            self._handlers[event](payload)
        except Exception:
            logger.exception("LiveFile %s handler failed for %s", event.value, self._path)

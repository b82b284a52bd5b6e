"""Event kinds and exceptions for live files."""

from __future__ import annotations

from enum import Enum


class LiveFileEvent(str, Enum):
    """Event kinds a LiveFile can dispatch to a handler."""

    reload = "reload"
    error = "error"


class LiveFileError(Exception):
    """Base class for LiveFile configuration errors."""


class UnsupportedEventError(LiveFileError, ValueError):
    """Raised when a handler is bound to an event kind LiveFile does not emit."""

    def __init__(self, event: object) -> None:
        self.event = event
        super().__init__(f"{event} event is not supported on LiveFile")


class RendererNotConfiguredError(LiveFileError, RuntimeError):
    """Raised when render() is called before any renderer was set."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"No renderer configured for {path}")

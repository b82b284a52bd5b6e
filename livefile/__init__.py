"""livefile - an in-memory view of a file that reloads itself when the file changes."""

from livefile.config import LiveFileConfig, load_config
from livefile.live_file import LiveFile
from livefile.models import (
    LiveFileError,
    LiveFileEvent,
    RendererNotConfiguredError,
    UnsupportedEventError,
)
from livefile.reader import FileReader
from livefile.watch import FileWatcher

__version__ = "0.1.0"

__all__ = [
    "FileReader",
    "FileWatcher",
    "LiveFile",
    "LiveFileConfig",
    "LiveFileError",
    "LiveFileEvent",
    "RendererNotConfiguredError",
    "UnsupportedEventError",
    "load_config",
]

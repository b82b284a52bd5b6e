"""Asynchronous file reads on a small thread pool."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

ReadCallback = Callable[[BaseException | None, str | None], None]


class Reader(Protocol):
    """Reads a file off the caller's thread and reports through a callback."""

    def read(self, path: Path, callback: ReadCallback) -> None: ...


class FileReader:
    """Reads text files on a ThreadPoolExecutor.

    Every outcome goes through ``callback(error, content)``: exactly one of
    the two arguments is ``None``. Nothing is raised to the caller of
    :meth:`read`, including after :meth:`shutdown`.
    """

    def __init__(self, encoding: str = "utf-8", max_workers: int = 2) -> None:
        self.encoding = encoding
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="livefile-read"
        )
        self._lock = threading.Lock()
        self._shutdown = False

    def read(self, path: Path, callback: ReadCallback) -> None:
        with self._lock:
            if self._shutdown:
                callback(RuntimeError(f"Reader is shut down, cannot read {path}"), None)
                return
            future = self._executor.submit(Path(path).read_text, encoding=self.encoding)
        future.add_done_callback(lambda f: self._complete(path, f, callback))

    def _complete(self, path: Path, future: Future[str], callback: ReadCallback) -> None:
        if future.cancelled():
            callback(RuntimeError(f"Read of {path} was cancelled"), None)
            return
        error = future.exception()
        if error is not None:
            logger.debug("Read of %s failed: %s", path, error)
            callback(error, None)
            return
        callback(None, future.result())

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting reads; pending reads are cancelled."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
        self._executor.shutdown(wait=wait, cancel_futures=True)

"""Bounded, threaded file writer.

This module provides:
- BufferedFileWriter: Writes chunks to a file on a background thread

The reader side of a transfer hands chunks to the writer through a bounded
queue. When the queue is full the destination is slower than the source and
the reader blocks (backpressure) until the writer drains, for at most
``drain_timeout`` seconds, checking for cancellation while it waits.
"""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
import time
from pathlib import Path

from cardsync.core.config import EngineConfig
from cardsync.sync.types import CancelCheck, DrainTimeoutError, TransferCancelledError

logger = logging.getLogger(__name__)

# Marks the end of the stream in the chunk queue
_EOF = b""


class BufferedFileWriter:
    """Writes chunks to a destination file from a dedicated thread.

    Usage:
        writer = BufferedFileWriter(path, config, cancel_check)
        try:
            for chunk in chunks:
                writer.write(chunk)
            writer.close()
        except BaseException:
            writer.abort()
            raise
    """

    def __init__(
        self,
        path: Path,
        config: EngineConfig,
        cancel_check: CancelCheck | None = None,
    ) -> None:
        """Open the destination (truncating it) and start the writer thread.

        Args:
            path: Destination file path.
            config: Buffer depth, drain timeout and poll interval.
            cancel_check: Returns True once the transfer should stop.

        Raises:
            OSError: If the destination cannot be opened.
        """
        self._path = Path(path)
        self._config = config
        self._cancel_check = cancel_check or (lambda: False)
        self._queue: queue.Queue[bytes] = queue.Queue(maxsize=config.write_buffer_chunks)
        self._error: OSError | None = None
        self._aborted = threading.Event()
        self._closed = False
        self.bytes_written = 0

        # Closed by the writer thread
        self._file = open(self._path, "wb")
        self._thread = threading.Thread(
            target=self._run,
            name=f"Writer-{self._path.name}",
            daemon=True,
        )
        self._thread.start()

    @property
    def path(self) -> Path:
        return self._path

    def _run(self) -> None:
        try:
            while True:
                chunk = self._queue.get()
                if not chunk or self._aborted.is_set():
                    break
                self._file.write(chunk)
                self.bytes_written += len(chunk)
        except OSError as e:
            self._error = e
        finally:
            try:
                self._file.close()
            except OSError as e:
                if self._error is None:
                    self._error = e

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error
        if not self._thread.is_alive() and not self._closed:
            raise OSError(f"Writer for {self._path} stopped unexpectedly")

    def _put(self, chunk: bytes) -> None:
        """Queue a chunk, waiting for the writer to drain if the buffer is full."""
        deadline = time.monotonic() + self._config.drain_timeout
        while True:
            self._raise_if_failed()
            try:
                self._queue.put(chunk, timeout=self._config.poll_interval)
                return
            except queue.Full:
                pass
            if self._cancel_check():
                raise TransferCancelledError(f"Cancelled while writing {self._path}")
            if time.monotonic() >= deadline:
                raise DrainTimeoutError(self._path, self._config.drain_timeout)

    def write(self, chunk: bytes) -> None:
        """Hand a chunk to the writer thread.

        Raises:
            DrainTimeoutError: If the buffer stayed full for longer than drain_timeout.
            TransferCancelledError: If cancellation was requested while waiting.
            OSError: If the writer thread failed.
        """
        if not chunk:
            return
        self._put(chunk)

    def close(self) -> None:
        """Flush remaining chunks and close the file.

        Raises:
            DrainTimeoutError: If the writer did not finish within drain_timeout.
            TransferCancelledError: If cancellation was requested while draining.
            OSError: If a write or the final flush failed.
        """
        self._put(_EOF)
        deadline = time.monotonic() + self._config.drain_timeout
        while True:
            self._thread.join(timeout=self._config.poll_interval)
            if not self._thread.is_alive():
                break
            if self._cancel_check():
                raise TransferCancelledError(f"Cancelled while flushing {self._path}")
            if time.monotonic() >= deadline:
                raise DrainTimeoutError(self._path, self._config.drain_timeout)
        self._closed = True
        if self._error is not None:
            raise self._error

    def abort(self, timeout: float = 1.0) -> None:
        """Stop writing, drop buffered chunks and wait briefly for the thread.

        The caller is responsible for removing the partial file.
        """
        self._aborted.set()
        with contextlib.suppress(queue.Empty):
            while True:
                self._queue.get_nowait()
        with contextlib.suppress(queue.Full):
            self._queue.put_nowait(_EOF)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Writer for %s did not stop within %.1fs", self._path, timeout)
        self._closed = True

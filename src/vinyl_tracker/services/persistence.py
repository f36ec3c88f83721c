"""Durable storage of library snapshots.

Two pieces:

- :class:`SnapshotFile` reads and atomically writes one library document.
- :class:`SnapshotWriter` runs those writes on a single background worker,
  in submission order, so callers never wait for disk I/O.
"""

from __future__ import annotations

import contextlib
import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from types import TracebackType

from vinyl_tracker.exceptions import SnapshotWriteError, StorageError
from vinyl_tracker.models.snapshot import LibrarySnapshot

logger = logging.getLogger(__name__)


class SnapshotFile:
    """A library document on disk.

    Writes go to a hidden temporary sibling which is then renamed over the
    target, so a crash mid-write leaves the previous file intact.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @property
    def _temp_path(self) -> Path:
        return self._path.with_name(f".{self._path.name}.tmp")

    def load(self) -> LibrarySnapshot | None:
        """Read and decode the document.

        Returns:
            The snapshot, or None if the file does not exist.

        Raises:
            StorageError: If the file exists but cannot be read.
            SnapshotDecodeError: If the content is malformed.
        """
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e
        return LibrarySnapshot.decode(data)

    def write(self, snapshot: LibrarySnapshot) -> None:
        """Atomically replace the document with ``snapshot``.

        Raises:
            SnapshotWriteError: If the directory or file cannot be written.
        """
        data = snapshot.encode()
        tmp = self._temp_path
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            tmp.replace(self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise SnapshotWriteError(f"Could not write {self._path}: {e}") from e


class SnapshotWriter:
    """Serializes snapshot writes on one background thread.

    Thread-Safety:
        ``submit`` may be called from any thread. Writes execute strictly in
        submission order and never overlap; a later snapshot therefore always
        lands after (and supersedes) an earlier one.

    Failures:
        Write errors are logged on the worker and never propagate to the
        caller. The in-memory state that produced the snapshot is left as is.

    Usage::

        writer = SnapshotWriter(SnapshotFile(path))
        writer.submit(snapshot)   # returns immediately
        writer.flush()            # wait until everything queued is on disk
        writer.close()
    """

    def __init__(self, file: SnapshotFile) -> None:
        self._file = file
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="library-persistence"
        )
        self._lock = threading.Lock()
        self._closed = False

    @property
    def path(self) -> Path:
        return self._file.path

    def submit(self, snapshot: LibrarySnapshot) -> Future[None] | None:
        """Queue a snapshot for writing.

        Args:
            snapshot: Full library state to persist.

        Returns:
            A future resolving once the write attempt finished, or None if
            the writer is already closed and the snapshot was dropped.
        """
        with self._lock:
            if self._closed:
                logger.warning(
                    "Library writer is closed; snapshot for %s dropped", self.path
                )
                return None
            return self._executor.submit(self._write, snapshot)

    def flush(self) -> None:
        """Block until every snapshot queued so far has been written."""
        with self._lock:
            if self._closed:
                return
            barrier = self._executor.submit(lambda: None)
        barrier.result()

    def close(self) -> None:
        """Drain pending writes and stop the worker. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=True)

    def _write(self, snapshot: LibrarySnapshot) -> None:
        try:
            self._file.write(snapshot)
        except SnapshotWriteError as e:
            logger.error("Failed to persist library: %s", e.message)
        except Exception:
            logger.exception("Unexpected error while persisting library")
        else:
            logger.debug(
                "Persisted library: %d album(s), %d collection(s) -> %s",
                len(snapshot.albums),
                len(snapshot.collections),
                self.path,
            )

    def __enter__(self) -> SnapshotWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

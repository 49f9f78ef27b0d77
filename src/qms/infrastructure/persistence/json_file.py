"""Atomic JSON document file shared by the JSON-backed stores."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


class JsonDocument:
    """A JSON object on disk, replaced wholesale on every write.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so readers see either the old or the new
    document, never a partial one.  Read-modify-write cycles must run
    inside ``locked()``; the lock lives in a sidecar file because the
    document itself is replaced on every write.
    """

    def __init__(self, file_path: Path, empty: dict) -> None:
        self._file_path = file_path
        self._lock_path = file_path.with_name(f".{file_path.name}.lock")
        self._empty = empty
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold an exclusive lock on the document.

        Not re-entrant: each ``with`` opens its own lock file handle, so
        nesting blocks forever, also within one thread.
        """
        with open(self._lock_path, "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def load(self) -> dict:
        data = json.loads(self._file_path.read_text(encoding="utf-8"))
        for key, default in self._empty.items():
            data.setdefault(key, type(default)())
        return data

    def persist(self, data: dict) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=f".{self._file_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(data, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _ensure_file(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        with self.locked():
            if not self._file_path.exists():
                self.persist(self._empty)

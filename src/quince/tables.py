"""Lockable key-value tables backing classifier state.

Each table owns a reader/writer lock. Table access itself is not locked:
callers take the locks they need through :meth:`TableSet.hold` so that
multi-table operations acquire them in one consistent order.
"""

from __future__ import annotations

import logging
import pickle
import shelve
import shutil
import tempfile
import threading
from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any

LOGGER = logging.getLogger(__name__)


class ReadWriteLock:
    """Writer-preferring reader/writer lock.

    New readers wait while a writer is queued so a stream of scorers cannot
    starve learners. Not reentrant.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._condition:
            while self._writer or self._waiting_writers:
                self._condition.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._condition:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a held read lock")
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    def acquire_write(self) -> None:
        with self._condition:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._condition.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._condition:
            if not self._writer:
                raise RuntimeError("release_write() called without a held write lock")
            self._writer = False
            self._condition.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class Table(MutableMapping[str, Any]):
    """A named mapping stored in memory or in a scratch shelve file.

    Values read from a disk-backed table are copies: nested records must be
    written back after modification.
    """

    def __init__(self, name: str, *, on_disk: bool = False, scratch_dir: Path | None = None) -> None:
        self.name = name
        self.lock = ReadWriteLock()
        self._scratch: Path | None = None
        self._data: MutableMapping[str, Any]
        if on_disk:
            self._scratch = Path(tempfile.mkdtemp(prefix=f"quince-{name}-", dir=scratch_dir))
            self._data = shelve.open(
                str(self._scratch / name), flag="n", protocol=pickle.HIGHEST_PROTOCOL
            )
            LOGGER.debug("Table '%s' backed by scratch file in %s", name, self._scratch)
        else:
            self._data = {}

    @property
    def on_disk(self) -> bool:
        return self._scratch is not None

    @property
    def path(self) -> Path | None:
        """Scratch directory holding the backing file, if any."""

        return self._scratch

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data.keys()))

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        if isinstance(self._data, dict):
            self._data.clear()
            return
        for key in list(self._data.keys()):
            del self._data[key]

    def replace(self, contents: Mapping[str, Any]) -> None:
        """Swap the full contents of the table."""

        self.clear()
        for key, value in contents.items():
            self._data[key] = value
        self.sync()

    def copy(self) -> dict[str, Any]:
        """Return a detached copy of every entry."""

        return {key: _copy_value(value) for key, value in self._data.items()}

    def sync(self) -> None:
        if isinstance(self._data, shelve.Shelf):
            self._data.sync()

    def close(self) -> None:
        """Release the backing store and remove any scratch file."""

        if isinstance(self._data, shelve.Shelf):
            self._data.close()
            self._data = {}
        if self._scratch is not None:
            shutil.rmtree(self._scratch, ignore_errors=True)
            self._scratch = None


class TableSet:
    """Registry of a classifier's tables with deadlock-free multi-locking."""

    def __init__(self, *, scratch_dir: Path | None = None) -> None:
        self._tables: dict[str, Table] = {}
        self._scratch_dir = scratch_dir

    def add(self, name: str, *, on_disk: bool = False) -> Table:
        if name in self._tables:
            raise ValueError(f"Data table '{name}' conflicts with an existing table.")
        table = Table(name, on_disk=on_disk, scratch_dir=self._scratch_dir)
        self._tables[name] = table
        return table

    def __getitem__(self, name: str) -> Table:
        return self._tables[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def names(self) -> list[str]:
        return sorted(self._tables)

    def disk_backed(self) -> list[str]:
        return sorted(name for name, table in self._tables.items() if table.on_disk)

    @contextmanager
    def hold(self, *, read: Iterable[str] = (), write: Iterable[str] = ()) -> Iterator[None]:
        """Hold shared locks on ``read`` and exclusive locks on ``write`` tables.

        Locks are always taken in table-name order. A table named in both
        sets is locked exclusively.
        """

        exclusive = set(write)
        wanted = exclusive | set(read)
        with ExitStack() as stack:
            for name in sorted(wanted):
                lock = self._tables[name].lock
                if name in exclusive:
                    stack.enter_context(lock.write_locked())
                else:
                    stack.enter_context(lock.read_locked())
            yield

    def lock_all(self) -> Any:
        """Exclusively lock every table for whole-object operations."""

        return self.hold(write=self.names())

    def export(self) -> dict[str, dict[str, Any]]:
        """Copy every table's contents. Caller must hold at least read locks."""

        return {name: table.copy() for name, table in self._tables.items()}

    def restore(self, contents: Mapping[str, Mapping[str, Any]]) -> None:
        """Replace table contents from :meth:`export` output. Caller must hold write locks."""

        unknown = set(contents) - set(self._tables)
        if unknown:
            raise KeyError(f"Unknown table(s): {', '.join(sorted(unknown))}")
        for name, table in self._tables.items():
            table.replace(contents.get(name, {}))

    def close(self) -> None:
        for table in self._tables.values():
            table.close()


def _copy_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _copy_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    return value


__all__ = ["ReadWriteLock", "Table", "TableSet"]

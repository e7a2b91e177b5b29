"""Single-file JSON document store.

All collections live in one JSON document so a unit of work can replace
the whole file at once (write to a temp file, then ``os.replace``).

Access is serialised at two levels.  A re-entrant lock per file path
orders threads within the process, and a ``filelock`` lock on a sidecar
``.lock`` file orders processes sharing the data file, such as
``crm sweep serve`` running next to one-off CLI commands.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path

from filelock import FileLock, Timeout

from crm.domain.exceptions import ConcurrentModification

COLLECTIONS = (
    "orders",
    "products",
    "calculations",
    "stock_levels",
    "transactions",
    "reminders",
    "notifications",
)

LOCK_TIMEOUT = 30.0


class StoreLock:
    """Thread lock plus inter-process file lock, taken and released together."""

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path
        self._thread_lock = threading.RLock()
        self._file_lock = FileLock(str(lock_path))

    def acquire(self, timeout: float = LOCK_TIMEOUT) -> None:
        if not self._thread_lock.acquire(timeout=timeout):
            raise ConcurrentModification(f"Data store {self.lock_path.stem} is busy")
        try:
            self._file_lock.acquire(timeout=timeout)
        except Timeout as exc:
            self._thread_lock.release()
            raise ConcurrentModification(
                f"Data store {self.lock_path.stem} is locked by another process"
            ) from exc
        except BaseException:
            self._thread_lock.release()
            raise

    def release(self) -> None:
        try:
            self._file_lock.release()
        finally:
            self._thread_lock.release()


_LOCKS: dict[Path, StoreLock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> StoreLock:
    with _LOCKS_GUARD:
        lock = _LOCKS.get(path)
        if lock is None:
            lock = _LOCKS[path] = StoreLock(path.with_name(path.name + ".lock"))
        return lock


def empty_document() -> dict:
    document: dict = {name: [] for name in COLLECTIONS}
    document["counters"] = {}
    return document


class JsonStore:

    def __init__(self, file_path: Path, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self._file_path = Path(file_path).resolve()
        self.lock_timeout = lock_timeout
        self.lock = _lock_for(self._file_path)
        self._ensure_file()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def load(self) -> dict:
        document = json.loads(self._file_path.read_text(encoding="utf-8"))
        for name in COLLECTIONS:
            document.setdefault(name, [])
        document.setdefault("counters", {})
        return document

    def persist(self, document: dict) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=".crm-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.write("\n")
            os.replace(tmp_name, self._file_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _ensure_file(self) -> None:
        if self._file_path.exists():
            return
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self.lock.acquire(self.lock_timeout)
        try:
            if not self._file_path.exists():
                self.persist(empty_document())
        finally:
            self.lock.release()


class JsonCollection:
    """Shared helpers for repositories backed by one store collection."""

    def __init__(self, document: dict, name: str) -> None:
        self._document = document
        self._name = name

    @property
    def _records(self) -> list[dict]:
        return self._document[self._name]

    def _next_id(self) -> int:
        counters = self._document["counters"]
        counters[self._name] = counters.get(self._name, 0) + 1
        return counters[self._name]

    def _find(self, key: str, value) -> dict | None:
        for raw in self._records:
            if raw[key] == value:
                return raw
        return None

    def _upsert(self, key: str, raw: dict) -> None:
        records = self._records
        for i, existing in enumerate(records):
            if existing[key] == raw[key]:
                records[i] = raw
                return
        records.append(raw)

    def _remove(self, key: str, value) -> None:
        self._document[self._name] = [r for r in self._records if r[key] != value]

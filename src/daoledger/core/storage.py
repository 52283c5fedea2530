"""
State storage for the governance ledger.

The contract never touches a backing structure directly. Each call opens a
StoreTransaction: reads see the call's own earlier writes, writes are
buffered, and commit applies them to the store in one step. Anything that
aborts the call simply drops the buffer.

Values are integers, strings or the record types in daoledger.core.models.
Reads hand out copies, so mutating a loaded record changes nothing until it
is inserted again.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping

from daoledger.core.exceptions import CorruptedStateError, StateError, StorageError
from daoledger.core.models import RECORD_TYPES

logger = logging.getLogger(__name__)

_MISSING = object()

SNAPSHOT_VERSION = 1


class StateStore(ABC):
    """Key-value store the contract persists into."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the value stored under key, or default."""

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Return True if key holds a value."""

    @abstractmethod
    def apply(self, writes: Mapping[str, Any]) -> None:
        """Apply a committed write set atomically."""

    def begin(self) -> "StoreTransaction":
        """Open a transaction scoped to one contract call."""
        return StoreTransaction(self)


class StoreTransaction:
    """Read-your-writes overlay over a StateStore for a single call."""

    def __init__(self, store: StateStore) -> None:
        self._store = store
        self._writes: Dict[str, Any] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_writes(self) -> int:
        return len(self._writes)

    def get(self, key: str, default: Any = None) -> Any:
        self._require_open()
        if key in self._writes:
            return copy.deepcopy(self._writes[key])
        return self._store.get(key, default)

    def contains(self, key: str) -> bool:
        self._require_open()
        return key in self._writes or self._store.contains(key)

    def insert(self, key: str, value: Any) -> None:
        self._require_open()
        self._writes[key] = copy.deepcopy(value)

    def commit(self) -> None:
        self._require_open()
        self._closed = True
        if self._writes:
            self._store.apply(self._writes)
        logger.debug(
            "Store transaction committed",
            extra={"event": "storage.commit", "writes": len(self._writes)},
        )

    def rollback(self) -> None:
        if self._closed:
            return
        self._closed = True
        discarded = len(self._writes)
        self._writes.clear()
        logger.debug(
            "Store transaction rolled back",
            extra={"event": "storage.rollback", "discarded": discarded},
        )

    def _require_open(self) -> None:
        if self._closed:
            raise StateError("Store transaction is already closed")


class InMemoryStore(StateStore):
    """Dict-backed store; the default for embedding and tests."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key, _MISSING)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def contains(self, key: str) -> bool:
        return key in self._data

    def apply(self, writes: Mapping[str, Any]) -> None:
        self._data.update(copy.deepcopy(dict(writes)))

    def __len__(self) -> int:
        return len(self._data)

    def snapshot(self) -> Dict[str, Any]:
        """Return a deep copy of every stored entry."""
        return copy.deepcopy(self._data)


class JsonFileStore(InMemoryStore):
    """
    In-memory store mirrored to a JSON file.

    Every committed write set is written to a temporary file and moved over
    the snapshot with os.replace, so the file always holds the state after
    some complete call. If the write fails, memory is left unchanged too.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path).expanduser()
        super().__init__(self._load())

    def apply(self, writes: Mapping[str, Any]) -> None:
        updated = dict(self._data)
        updated.update(copy.deepcopy(dict(writes)))
        self._write_snapshot(updated)
        self._data = updated

    # ==================== Serialization ====================

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CorruptedStateError(
                f"Cannot read state snapshot {self.path}: {exc}",
                details={"path": str(self.path)},
            ) from exc

        if not isinstance(payload, dict) or payload.get("version") != SNAPSHOT_VERSION:
            raise CorruptedStateError(
                f"Unsupported state snapshot format in {self.path}",
                details={"path": str(self.path)},
            )

        entries = payload.get("entries", {})
        if not isinstance(entries, dict):
            raise CorruptedStateError(
                f"State snapshot entries in {self.path} are not a mapping",
                details={"path": str(self.path)},
            )
        try:
            data = {key: decode_value(value) for key, value in entries.items()}
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise CorruptedStateError(
                f"Malformed record in state snapshot {self.path}: {exc}",
                details={"path": str(self.path)},
            ) from exc

        logger.info(
            "State snapshot loaded",
            extra={"event": "storage.loaded", "path": str(self.path), "entries": len(data)},
        )
        return data

    def _write_snapshot(self, data: Mapping[str, Any]) -> None:
        payload = {
            "version": SNAPSHOT_VERSION,
            "entries": {key: encode_value(value) for key, value in sorted(data.items())},
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=".state-", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise StorageError(
                f"Cannot write state snapshot {self.path}: {exc}",
                details={"path": str(self.path)},
                recoverable=True,
            ) from exc


def encode_value(value: Any) -> Any:
    """Encode a stored value into JSON-compatible form."""
    if isinstance(value, bool):
        raise TypeError("Booleans are not storable values")
    if isinstance(value, (int, str)):
        return value
    record_type = type(value).__name__
    if RECORD_TYPES.get(record_type) is not type(value):
        raise TypeError(f"Cannot encode value of type {record_type}")
    return {"record": record_type, "data": value.to_dict()}


def decode_value(encoded: Any) -> Any:
    """Inverse of encode_value."""
    if isinstance(encoded, (int, str)) and not isinstance(encoded, bool):
        return encoded
    if isinstance(encoded, dict):
        record_cls = RECORD_TYPES[encoded["record"]]
        return record_cls.from_dict(encoded["data"])
    raise TypeError(f"Cannot decode stored value {encoded!r}")

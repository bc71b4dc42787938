# ballot_ledger/storage.py
"""
World-state stores.

The ledger only needs three things from its host store: point get, point put
and an ordered range scan. Stores that can also apply a batch of writes
atomically (checking the values the transition read) expose ``apply``; the
Transition uses it for optimistic concurrency on read-modify-write updates.
"""
import base64
import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from ballot_ledger.config import Settings
from ballot_ledger.errors import StaleStateError

logger = logging.getLogger(__name__)


@runtime_checkable
class WorldState(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        ...

    def put(self, key: str, value: bytes) -> None:
        ...

    def scan(self, start_key: str = "", end_key: str = "") -> Iterator[Tuple[str, bytes]]:
        ...


@dataclass(frozen=True)
class StagedWrite:
    """
    One pending write of a transition.

    When ``checked`` is set the write only applies if the stored value still
    equals ``expected`` (None meaning the key must be absent).
    """

    key: str
    value: bytes
    expected: Optional[bytes] = None
    checked: bool = False


def in_range(key: str, start_key: str, end_key: str) -> bool:
    # start inclusive, end exclusive, empty bound means open
    if start_key and key < start_key:
        return False
    if end_key and key >= end_key:
        return False
    return True


class InMemoryWorldState:
    """Dict-backed store; the default for tests and single-process hosts."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def scan(self, start_key: str = "", end_key: str = "") -> Iterator[Tuple[str, bytes]]:
        with self._lock:
            snapshot = sorted(
                (k, v) for k, v in self._data.items() if in_range(k, start_key, end_key)
            )
        yield from snapshot

    def apply(self, writes: List[StagedWrite]) -> None:
        """Apply all writes or none of them."""
        with self._lock:
            self._check(writes)
            for w in writes:
                self._data[w.key] = bytes(w.value)

    def _check(self, writes: List[StagedWrite]) -> None:
        for w in writes:
            if w.checked and (self._data.get(w.key) or None) != w.expected:
                raise StaleStateError(w.key)

    def __len__(self) -> int:
        return len(self._data)


class JsonFileWorldState(InMemoryWorldState):
    """
    Local development store persisted to a JSON file.

    Values are kept base64-encoded under a top-level "state" object. An empty
    or unreadable file is reset to an empty state.
    """

    def __init__(self, path: str):
        super().__init__()
        self.path = path
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._data = self._read()

    def _read(self) -> Dict[str, bytes]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return {k: base64.b64decode(v) for k, v in raw["state"].items()}
        except FileNotFoundError:
            self._write({})
            return {}
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"World state file {self.path} unreadable ({e}), resetting")
            self._write({})
            return {}

    def _write(self, data: Dict[str, bytes]) -> None:
        encoded = {k: base64.b64encode(v).decode("ascii") for k, v in sorted(data.items())}
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({"state": encoded}, f, indent=2)
        os.replace(tmp_path, self.path)

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            updated = dict(self._data)
            updated[key] = bytes(value)
            # file first: a failed write leaves memory untouched
            self._write(updated)
            self._data = updated

    def apply(self, writes: List[StagedWrite]) -> None:
        with self._lock:
            self._check(writes)
            updated = dict(self._data)
            for w in writes:
                updated[w.key] = bytes(w.value)
            self._write(updated)
            self._data = updated


def build_world_state(settings: Settings) -> WorldState:
    """Create the store selected by LEDGER_BACKEND."""
    if settings.backend == "memory":
        logger.info("Using in-memory world state")
        return InMemoryWorldState()
    if settings.backend == "json":
        logger.info(f"Using JSON file world state at {settings.json_path}")
        return JsonFileWorldState(settings.json_path)
    if settings.backend == "mongo":
        from ballot_ledger.storage_mongo import MongoWorldState

        return MongoWorldState.from_settings(settings)
    raise ValueError(f"Unknown world state backend: {settings.backend!r}")

# ballot_ledger/transition.py
"""
One request-scoped ledger transition.

Reads go straight to the world state; writes are staged and only reach the
store when the ``with`` block exits cleanly. If the block raises, nothing is
written, so a rejected precondition can never leave partial state behind.

Stores exposing ``apply`` receive the whole batch at once, with every write
to a key the transition read checked against the value it saw. Stores with
only ``put`` get the writes in staging order and must provide transition
level atomicity themselves (as a ledger peer does).
"""
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from ballot_ledger.storage import StagedWrite, WorldState

logger = logging.getLogger(__name__)


class Transition:
    def __init__(self, state: WorldState):
        self.state = state
        self._reads: Dict[str, Optional[bytes]] = {}
        self._writes: Dict[str, bytes] = {}
        self.committed = False

    def __enter__(self) -> "Transition":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        elif self._writes:
            logger.debug(f"Discarding {len(self._writes)} staged writes after {exc_type.__name__}")
        return False

    def get(self, key: str) -> Optional[bytes]:
        """Stored value for key, None when absent or empty. Sees staged writes."""
        if key in self._writes:
            return self._writes[key]
        if key not in self._reads:
            value = self.state.get(key)
            self._reads[key] = value if value else None
        return self._reads[key]

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def put(self, key: str, value: bytes) -> None:
        if self.committed:
            raise RuntimeError("Transition already committed")
        # re-inserting moves the key to the end so staging order is write order
        self._writes.pop(key, None)
        self._writes[key] = value

    def scan(self, start_key: str = "", end_key: str = "") -> Iterator[Tuple[str, bytes]]:
        return self.state.scan(start_key, end_key)

    def staged(self) -> List[StagedWrite]:
        return [
            StagedWrite(
                key=key,
                value=value,
                expected=self._reads.get(key),
                checked=key in self._reads,
            )
            for key, value in self._writes.items()
        ]

    def commit(self) -> None:
        if self.committed:
            return
        writes = self.staged()
        apply = getattr(self.state, "apply", None)
        if apply is not None:
            apply(writes)
        else:
            for w in writes:
                self.state.put(w.key, w.value)
        self.committed = True
        if writes:
            logger.debug(f"Committed writes to {', '.join(w.key for w in writes)}")

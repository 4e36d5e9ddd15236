from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from milehigh.data.models import Event, Snapshot, now_ms


@dataclass(frozen=True)
class StoreView:
    """Snapshot plus the generation it was installed as, taken in one read."""

    snapshot: Optional[Snapshot]
    generation: int
    updated_at_ms: Optional[int]

    def all_events(self) -> Dict[str, List[Event]]:
        return self.snapshot.as_dict() if self.snapshot is not None else {}

    def failures(self) -> Dict[str, str]:
        return dict(self.snapshot.failures) if self.snapshot is not None else {}

    def status(self) -> Dict[str, Any]:
        return {
            "populated": self.snapshot is not None,
            "generation": self.generation,
            "updated_at_ms": self.updated_at_ms,
            "sources": self.snapshot.sources() if self.snapshot is not None else [],
        }


class SnapshotStore:
    """
    Holds the current Snapshot. read() and replace() only touch the reference
    under the lock, so neither waits on network work.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Optional[Snapshot] = None
        self._generation = 0
        self._updated_at_ms: Optional[int] = None

    def replace(self, snapshot: Snapshot) -> None:
        if not isinstance(snapshot, Snapshot):
            raise TypeError(f"expected Snapshot, got {type(snapshot).__name__}")
        with self._lock:
            self._current = snapshot
            self._generation += 1
            self._updated_at_ms = now_ms()

    def read(self) -> Optional[Snapshot]:
        with self._lock:
            return self._current

    def view(self) -> StoreView:
        with self._lock:
            return StoreView(self._current, self._generation, self._updated_at_ms)

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def status(self) -> Dict[str, Any]:
        return self.view().status()

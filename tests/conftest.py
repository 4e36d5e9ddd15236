from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional

import pytest

from milehigh.data.errors import TransportError
from milehigh.data.models import Event


def ev(id: str, t: int, name: Optional[str] = None) -> Event:
    return Event(id=id, name=name or f"event {id}", time=t)


class FakeFetcher:
    """Returns canned events per source; sources listed in `fail` raise TransportError."""

    def __init__(self, events: Dict[str, List[Event]], fail: Optional[Dict[str, str]] = None) -> None:
        self.events = events
        self.fail = fail or {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch(self, source_id: str) -> List[Event]:
        with self._lock:
            self.calls.append(source_id)
        if source_id in self.fail:
            raise TransportError(source_id, self.fail[source_id])
        return list(self.events.get(source_id, []))


def wait_until(pred: Callable[[], bool], timeout: float = 5.0) -> bool:
    end = time.time() + timeout
    while time.time() < end:
        if pred():
            return True
        time.sleep(0.01)
    return pred()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher(
        {
            "A": [ev("1", 300), ev("2", 100)],
            "C": [ev("c1", 50)],
        },
        fail={"B": "connection refused"},
    )

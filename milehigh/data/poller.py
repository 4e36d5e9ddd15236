from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from milehigh.data.aggregator import Aggregator
from milehigh.data.cache import SnapshotStore
from milehigh.data.models import Event, Snapshot, now_ms


class PollState(str, Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"


@dataclass
class PollerConfig:
    enabled: bool = True
    interval_sec: float = 300.0
    max_cycles: int = 0                 # 0 = unlimited (still bounded by stop)
    daemon: bool = True


class EventPoller:
    """
    Background refresh loop for the event cache.
      - First cycle runs as soon as the thread starts
      - Each cycle: aggregate all sources, then replace the cached snapshot
      - Waits interval_sec on the stop event between cycles, so stop() is prompt
    """

    def __init__(
        self,
        config: PollerConfig,
        aggregator: Aggregator,
        store: SnapshotStore,
        sources: Sequence[str],
    ) -> None:
        self.config = config
        self.aggregator = aggregator
        self.store = store
        self.sources = tuple(sources)

        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()
        self._state = PollState.IDLE
        self._cycles = 0
        self._last_started_ms: Optional[int] = None
        self._last_duration_ms: Optional[int] = None
        self._last_error: Optional[str] = None

    @property
    def state(self) -> PollState:
        with self._state_lock:
            return self._state

    @property
    def cycles(self) -> int:
        with self._state_lock:
            return self._cycles

    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if not self.config.enabled:
            logger.info("event poller not started (disabled)")
            return
        if self.running():
            return

        self._stop_evt.clear()
        self._thread = threading.Thread(target=self._run, name="event-poller", daemon=self.config.daemon)
        self._thread.start()
        logger.info(
            "event poller started: {} source(s), every {}s", len(self.sources), self.config.interval_sec
        )

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_evt.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("event poller stopped after {} cycle(s)", self.cycles)

    def run_once(self) -> Snapshot:
        """One poll cycle. Safe to call directly, e.g. from tests or a CLI."""
        started = now_ms()
        with self._state_lock:
            self._state = PollState.POLLING
            self._last_started_ms = started
        try:
            snap = self.aggregator.aggregate(self.sources)
            self.store.replace(snap)
        finally:
            duration = now_ms() - started
            with self._state_lock:
                self._state = PollState.IDLE
                self._cycles += 1
                self._last_duration_ms = duration

        logger.info(
            "poll cycle done: ok={} failed={} in {}ms", len(snap), len(snap.failures), duration
        )
        return snap

    def _run(self) -> None:
        while not self._stop_evt.is_set():
            err: Optional[str] = None
            try:
                self.run_once()
            except Exception as e:
                # keep polling; the next cycle is the retry
                err = f"{type(e).__name__}: {e}"
                logger.exception("poll cycle failed")
            with self._state_lock:
                self._last_error = err

            if self.config.max_cycles and self.cycles >= self.config.max_cycles:
                break

            self._stop_evt.wait(self.config.interval_sec)

    def all_events(self) -> Dict[str, List[Event]]:
        snap = self.store.read()
        if snap is None:
            return {}
        return snap.as_dict()

    def status(self) -> Dict[str, Any]:
        with self._state_lock:
            out = {
                "enabled": self.config.enabled,
                "interval_sec": self.config.interval_sec,
                "state": self._state.value,
                "cycles": self._cycles,
                "last_started_ms": self._last_started_ms,
                "last_duration_ms": self._last_duration_ms,
                "last_error": self._last_error,
            }
        out["running"] = self.running()
        out["sources"] = list(self.sources)
        return out

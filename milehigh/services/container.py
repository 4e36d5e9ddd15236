from __future__ import annotations

from typing import Optional

from milehigh.config import Settings
from milehigh.data.aggregator import Aggregator, Fetcher
from milehigh.data.cache import SnapshotStore
from milehigh.data.fetcher import EventFetcher
from milehigh.data.models import resolve_tz
from milehigh.data.poller import EventPoller, PollerConfig


class ServiceContainer:
    """
    Wires fetcher -> aggregator -> poller -> store from one Settings.
    Pass `fetcher` to swap the upstream client (tests, offline runs).
    """

    def __init__(self, settings: Optional[Settings] = None, fetcher: Optional[Fetcher] = None) -> None:
        self.settings = settings or Settings.from_env()
        s = self.settings

        self.display_tz = resolve_tz(s.display_tz)
        self.store = SnapshotStore()
        self.fetcher = fetcher or EventFetcher(api_template=s.api_template, timeout_s=s.fetch_timeout_s)
        self.aggregator = Aggregator(self.fetcher, max_workers=s.fetch_workers)
        self.poller = EventPoller(
            PollerConfig(enabled=s.poller_enabled, interval_sec=s.poll_interval_s, daemon=True),
            aggregator=self.aggregator,
            store=self.store,
            sources=s.groups,
        )

    def start(self) -> None:
        self.poller.start()

    def stop(self) -> None:
        self.poller.stop()

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from loguru import logger

from milehigh.data.errors import FetchError
from milehigh.data.models import Event, Snapshot


class Fetcher(Protocol):
    def fetch(self, source_id: str) -> List[Event]: ...


def sort_events(events: Iterable[Event]) -> List[Event]:
    # sorted() is stable: equal times keep fetch order
    return sorted(events, key=lambda e: e.time)


def _unique(source_ids: Sequence[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for s in source_ids:
        if s not in seen:
            seen.add(s)
            out.append(s)
    return out


class Aggregator:
    """
    Builds one Snapshot from a list of sources.
    - Fetches every source (concurrently when max_workers > 1)
    - Failed sources are logged and left out; the rest are unaffected
    - Each present source is sorted by time (stable)
    """

    def __init__(self, fetcher: Fetcher, max_workers: int = 4) -> None:
        self.fetcher = fetcher
        self.max_workers = max(1, int(max_workers))

    def _fetch_one(self, source_id: str) -> Tuple[str, List[Event], Optional[str]]:
        try:
            return source_id, self.fetcher.fetch(source_id), None
        except FetchError as e:
            return source_id, [], e.message or type(e).__name__
        except Exception as e:
            msg = str(e)
            return source_id, [], f"{type(e).__name__}: {msg}" if msg else type(e).__name__

    def aggregate(self, source_ids: Sequence[str]) -> Snapshot:
        sources = _unique(source_ids)
        if not sources:
            return Snapshot.build({})

        workers = min(self.max_workers, len(sources))
        if workers == 1:
            results = [self._fetch_one(s) for s in sources]
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="meetup-fetch") as pool:
                results = list(pool.map(self._fetch_one, sources))

        events: Dict[str, List[Event]] = {}
        failures: Dict[str, str] = {}
        for source_id, fetched, err in results:
            if err is not None:
                logger.warning("error fetching events for {}: {}", source_id, err)
                failures[source_id] = err
                continue
            events[source_id] = sort_events(fetched)

        return Snapshot.build(events, failures=failures)

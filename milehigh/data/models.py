from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr

# Go's time.RFC1123 layout: "Mon, 02 Jan 2006 15:04:05 MST"
RFC1123_FORMAT = "%a, %d %b %Y %H:%M:%S %Z"


def now_ms() -> int:
    return int(time.time() * 1000)


def resolve_tz(name: Optional[str]) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"unknown display timezone {name!r}") from e


class EventPayload(BaseModel):
    """Wire shape of one upstream event. Extra fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: StrictStr
    name: StrictStr
    time: StrictInt


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    time: int  # epoch milliseconds, UTC

    @classmethod
    def from_payload(cls, p: EventPayload) -> "Event":
        return cls(id=p.id, name=p.name, time=p.time)

    def when(self, tz: Optional[tzinfo] = None) -> datetime:
        # second precision, like the page has always shown
        return datetime.fromtimestamp(self.time // 1000, tz=tz or timezone.utc)

    def human_time(self, tz: Optional[tzinfo] = None) -> str:
        return self.when(tz).strftime(RFC1123_FORMAT)

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "time": self.time}


@dataclass(frozen=True)
class Snapshot:
    """
    Result of one poll cycle: source id -> events sorted by time.

    A source missing from `events` failed in that cycle; `failures` says why.
    Never mutated after construction.
    """

    events: Mapping[str, Tuple[Event, ...]] = field(default_factory=lambda: MappingProxyType({}))
    failures: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    created_at_ms: int = 0

    @classmethod
    def build(
        cls,
        events: Mapping[str, Sequence[Event]],
        failures: Optional[Mapping[str, str]] = None,
        created_at_ms: Optional[int] = None,
    ) -> "Snapshot":
        return cls(
            events=MappingProxyType({k: tuple(v) for k, v in events.items()}),
            failures=MappingProxyType(dict(failures or {})),
            created_at_ms=now_ms() if created_at_ms is None else created_at_ms,
        )

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls.build({}, created_at_ms=0)

    def sources(self) -> List[str]:
        return list(self.events.keys())

    def get(self, source: str) -> Optional[Tuple[Event, ...]]:
        return self.events.get(source)

    def as_dict(self) -> Dict[str, List[Event]]:
        return {k: list(v) for k, v in self.events.items()}

    def __len__(self) -> int:
        return len(self.events)

    def __contains__(self, source: object) -> bool:
        return source in self.events

    def __iter__(self) -> Iterator[str]:
        return iter(self.events)

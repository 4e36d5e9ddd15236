from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

from milehigh.data.models import resolve_tz

DEFAULT_API_TEMPLATE = "https://api.meetup.com/{source}/events?status=upcoming"

DEFAULT_GROUPS: Tuple[str, ...] = (
    "Boulder-Gophers",
    "Denver-Go-Language-User-Group",
    "Denver-Go-Programming-Language-Meetup",
)


def _env(name: str, default: str) -> str:
    v = os.getenv(name)
    return v.strip() if v and v.strip() else default


def _env_bool(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default).strip().lower()
    return v in ("1", "true", "yes", "on")


def _env_float(name: str, default: str) -> float:
    raw = _env(name, default)
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: str) -> int:
    raw = _env(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return tuple(p.strip() for p in v.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings, read once from the environment.
    The group list is compiled in; MEETUP_GROUPS overrides it.
    """

    poller_enabled: bool = True
    poll_interval_s: float = 300.0
    fetch_timeout_s: float = 10.0
    fetch_workers: int = 4
    api_template: str = DEFAULT_API_TEMPLATE
    groups: Tuple[str, ...] = field(default=DEFAULT_GROUPS)
    display_tz: str = "UTC"
    top_n: int = 3
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    def __post_init__(self) -> None:
        if self.poll_interval_s <= 0:
            raise ValueError(f"poll interval must be > 0, got {self.poll_interval_s}")
        if self.fetch_timeout_s <= 0:
            raise ValueError(f"fetch timeout must be > 0, got {self.fetch_timeout_s}")
        if self.fetch_workers < 1:
            raise ValueError(f"fetch workers must be >= 1, got {self.fetch_workers}")
        if not self.groups:
            raise ValueError("at least one meetup group is required")
        if "{source}" not in self.api_template:
            raise ValueError("api template must contain a {source} placeholder")
        if self.top_n < 0:
            raise ValueError(f"top_n must be >= 0, got {self.top_n}")
        resolve_tz(self.display_tz)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            poller_enabled=_env_bool("POLLER_ENABLED", "1"),
            poll_interval_s=_env_float("POLL_INTERVAL_S", "300"),
            fetch_timeout_s=_env_float("FETCH_TIMEOUT_S", "10"),
            fetch_workers=_env_int("FETCH_WORKERS", "4"),
            api_template=_env("MEETUP_API_TEMPLATE", DEFAULT_API_TEMPLATE),
            groups=_env_list("MEETUP_GROUPS", DEFAULT_GROUPS),
            display_tz=_env("DISPLAY_TZ", "UTC"),
            top_n=_env_int("TOP_N", "3"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            host=_env("HOST", "0.0.0.0"),
            port=_env_int("PORT", "8080"),
        )

from __future__ import annotations

from typing import List, Optional
from urllib.parse import quote

import requests
from pydantic import TypeAdapter, ValidationError

from milehigh.config import DEFAULT_API_TEMPLATE
from milehigh.data.errors import DecodeError, TransportError
from milehigh.data.models import Event, EventPayload

_PAYLOAD = TypeAdapter(List[EventPayload])


class EventFetcher:
    """
    Fetches upcoming events for one meetup group.
    One GET per call, no retry, no caching. Failures raise FetchError.
    """

    def __init__(
        self,
        api_template: str = DEFAULT_API_TEMPLATE,
        timeout_s: float = 10.0,
        session: Optional[requests.Session] = None,
        user_agent: str = "milehigh-events/2.0",
    ) -> None:
        self.api_template = api_template
        self.timeout_s = timeout_s
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = user_agent
        self.s = session

    def url_for(self, source_id: str) -> str:
        return self.api_template.format(source=quote(source_id, safe=""))

    def fetch(self, source_id: str) -> List[Event]:
        url = self.url_for(source_id)
        try:
            r = self.s.get(url, timeout=self.timeout_s)
            r.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(source_id, str(e) or type(e).__name__) from e

        try:
            items = _PAYLOAD.validate_json(r.content)
        except ValidationError as e:
            raise DecodeError(source_id, f"{e.error_count()} validation error(s): {_first_error(e)}") from e

        return [Event.from_payload(p) for p in items]


def _first_error(e: ValidationError) -> str:
    errs = e.errors()
    if not errs:
        return str(e)
    first = errs[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc or '<root>'}: {first.get('msg', '')}"

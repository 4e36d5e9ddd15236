"""
HTML rendering for the events page.

Takes the mapping returned by EventPoller.all_events() and produces the
page bytes. Up to `top_n` events per group; a group with none shows
"No Events". Groups render in name order.
"""

from __future__ import annotations

import html
from datetime import tzinfo
from typing import Dict, List, Mapping, Optional, Sequence

from milehigh.data.models import Event

PAGE_TITLE = "Mile High Gopher Events"
LOGO_URL = "/assets/logo.svg"
TOP_N = 3


def _escape(text: object) -> str:
    return html.escape(str(text)) if text is not None else ""


def upcoming(events: Mapping[str, Sequence[Event]], n: int = TOP_N) -> Dict[str, List[Event]]:
    """First `n` events per group, clamped to what each group has."""
    n = max(0, n)
    return {k: list(v[: min(n, len(v))]) for k, v in events.items()}


def _group_html(name: str, events: List[Event], tz: Optional[tzinfo]) -> str:
    if not events:
        items = "\t\t\t<div><strong>No Events</strong></div>\n"
    else:
        items = "".join(
            f"\t\t\t<li>{_escape(e.human_time(tz))} -- {_escape(e.name)}</li>\n" for e in events
        )
    return f"\t<h1>{_escape(name)}</h1>\n\t\t<ul>\n{items}\t\t</ul>\n"


def render_html(
    events: Mapping[str, Sequence[Event]],
    n: int = TOP_N,
    tz: Optional[tzinfo] = None,
) -> str:
    top = upcoming(events, n)
    groups = "".join(_group_html(name, top[name], tz) for name in sorted(top))
    return f"""<!DOCTYPE html>
<html>
	<head>
		<meta charset="UTF-8">
		<title>{PAGE_TITLE}</title>
		<link rel="stylesheet" href="/assets/styles.css">
	</head>
	<body>
	<img src="{LOGO_URL}" alt="{PAGE_TITLE}">
{groups}	</body>
</html>
"""


def render(events: Mapping[str, Sequence[Event]], n: int = TOP_N, tz: Optional[tzinfo] = None) -> bytes:
    return render_html(events, n=n, tz=tz).encode("utf-8")

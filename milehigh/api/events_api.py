from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse

from milehigh.services.container import ServiceContainer
from milehigh.ui.render import render_html, upcoming

router = APIRouter(tags=["events"])


def _container(request: Request) -> ServiceContainer:
    return request.app.state.container


@router.get("/", response_class=HTMLResponse)
def index(request: Request) -> HTMLResponse:
    c = _container(request)
    page = render_html(c.poller.all_events(), n=c.settings.top_n, tz=c.display_tz)
    return HTMLResponse(content=page)


@router.get("/v1/events")
def list_events(request: Request, limit: Optional[int] = Query(default=None, ge=0)) -> Dict[str, Any]:
    """
    Current snapshot as JSON. `limit` clamps the events returned per group.
    Empty `events` before the first poll completes.
    """
    view = _container(request).store.view()
    events = view.all_events()
    if limit is not None:
        events = upcoming(events, limit)
    return {
        "ok": True,
        "generation": view.generation,
        "updated_at_ms": view.updated_at_ms,
        "events": {k: [e.as_dict() for e in v] for k, v in events.items()},
    }


@router.get("/health/poller")
def health_poller(request: Request) -> Dict[str, Any]:
    """Poller + cache status. Must never raise."""
    try:
        c = _container(request)
        view = c.store.view()
        return {
            "ok": True,
            "poller": c.poller.status(),
            "store": view.status(),
            "failures": view.failures(),
        }
    except Exception as e:
        return {"ok": False, "error": str(e)}

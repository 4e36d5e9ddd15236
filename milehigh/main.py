from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from milehigh.api.events_api import router as events_router
from milehigh.log import configure_logging
from milehigh.services.container import ServiceContainer

ASSETS_DIR = Path(__file__).parent / "assets"


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the app around a container. The poller starts with the app and is
    stopped on shutdown; readers get an empty page until the first cycle ends.
    """
    container = container or ServiceContainer()
    configure_logging(container.settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container.start()
        try:
            yield
        finally:
            container.stop()

    app = FastAPI(title="Mile High Gopher Events", version="2.0.0", lifespan=lifespan)
    app.state.container = container

    app.include_router(events_router)
    app.mount("/assets", StaticFiles(directory=str(ASSETS_DIR)), name="assets")

    @app.get("/health")
    def health():
        return {"ok": True, "service": "milehigh-events"}

    return app

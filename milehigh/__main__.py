"""
Run the events page.

Usage:
    python -m milehigh
    uvicorn milehigh.main:create_app --factory
"""
from __future__ import annotations

import uvicorn

from milehigh.main import create_app
from milehigh.services.container import ServiceContainer


def main() -> None:
    container = ServiceContainer()
    app = create_app(container)
    s = container.settings
    uvicorn.run(app, host=s.host, port=s.port, log_level=s.log_level.lower())


if __name__ == "__main__":
    main()

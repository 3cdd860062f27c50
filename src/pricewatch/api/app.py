"""FastAPI application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from pricewatch.api import routes


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        Application with the price routes registered. Route handlers expect
        ``app.state.price_service`` (and optionally ``app.state.scheduler``).
    """
    app = FastAPI(title="PriceWatch", lifespan=lifespan)
    app.include_router(routes.router)
    return app

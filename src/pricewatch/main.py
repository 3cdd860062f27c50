"""Entry point for the price monitoring service.

Wires all components together, optionally embeds the FastAPI app, and
starts the scheduler. When the API is enabled (default), the scheduler and
the API share a single asyncio event loop via uvicorn's programmatic API
and FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in _build_components):
1. PriceDatabase + PriceStore + AlertStore (persistence)
2. PriceFeed (CoinGecko or ccxt exchange)
3. SmtpNotifier (email transport)
4. MonitoringEngine (sample / detect / alerts)
5. CycleScheduler (fixed-period single-flight timer)
6. SwapQuoter + PriceService (on-demand operations)
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from pricewatch.config import AppSettings
from pricewatch.data import AlertStore, PriceDatabase, PriceStore
from pricewatch.engine import MonitoringEngine
from pricewatch.feeds import build_price_feed
from pricewatch.logging import get_logger, setup_logging
from pricewatch.notify import SmtpNotifier
from pricewatch.scheduler import CycleScheduler
from pricewatch.service import PriceService
from pricewatch.swap import SwapQuoter


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all service components from settings.

    Note: Does NOT connect the database or the feed -- that happens in
    _start_components, called from the lifespan (API mode) or run().
    """
    timeout = settings.monitor.call_timeout_seconds

    database = PriceDatabase(settings.storage.db_path)
    price_store = PriceStore(database)
    alert_store = AlertStore(database)

    feed = build_price_feed(settings.feed, timeout=timeout)
    notifier = SmtpNotifier(settings.email, timeout=timeout)

    engine = MonitoringEngine(
        feed=feed,
        price_store=price_store,
        alert_store=alert_store,
        notifier=notifier,
        settings=settings.monitor,
    )
    scheduler = CycleScheduler(
        engine,
        period_seconds=settings.monitor.sampling_period_seconds,
        shutdown_grace_seconds=settings.monitor.shutdown_grace_seconds,
    )

    quoter = SwapQuoter(feed, fee_rate=settings.swap.fee_rate, timeout=timeout)
    price_service = PriceService(
        price_store=price_store,
        alert_store=alert_store,
        quoter=quoter,
        history_window_seconds=settings.monitor.history_window_seconds,
        swap_source_chain=settings.swap.source_chain,
        swap_target_chain=settings.swap.target_chain,
    )

    return {
        "database": database,
        "feed": feed,
        "notifier": notifier,
        "engine": engine,
        "scheduler": scheduler,
        "price_service": price_service,
    }


async def _start_components(components: dict[str, Any]) -> None:
    await components["database"].connect()
    await components["feed"].connect()
    await components["scheduler"].start()


async def _stop_components(components: dict[str, Any]) -> None:
    await components["scheduler"].stop()
    await components["feed"].close()
    await components["database"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application."""
    logger = get_logger("pricewatch.main")
    components = app.state.components

    app.state.price_service = components["price_service"]
    app.state.scheduler = components["scheduler"]

    await _start_components(components)
    logger.info("lifespan_started")

    yield

    await _stop_components(components)
    logger.info("pricewatch_stopped")


async def run() -> None:
    """Run the price monitoring service.

    When the API is enabled (API_ENABLED=true, the default) uvicorn owns the
    loop and signal handling; otherwise the scheduler runs until SIGINT/SIGTERM.
    """
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("pricewatch.main")

    components = _build_components(settings)

    if settings.api.enabled:
        from pricewatch.api.app import create_app

        app = create_app(lifespan=lifespan)
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.api.host,
            port=settings.api.port,
            tracked=settings.monitor.tracked_chains,
            watched=settings.monitor.watched_chains,
        )
        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
        return

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info(
        "starting_without_api",
        tracked=settings.monitor.tracked_chains,
        watched=settings.monitor.watched_chains,
        period_seconds=settings.monitor.sampling_period_seconds,
    )
    await _start_components(components)
    try:
        await stop_event.wait()
        logger.info("graceful_shutdown_signal")
    finally:
        await _stop_components(components)
        logger.info("pricewatch_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()

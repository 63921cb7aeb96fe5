import asyncio
import contextlib
import logging
from typing import Optional

from fastapi import FastAPI

from pricewatch.api.routes import router as api_router
from pricewatch.config import Settings, get_settings
from pricewatch.feed.base import TradeFeed
from pricewatch.feed.loader import get_feed
from pricewatch.jobs.feed_ingest import feed_ingest_loop
from pricewatch.logging_setup import configure_logging
from pricewatch.series.store import BoundedSeriesStore

log = logging.getLogger("pricewatch")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BoundedSeriesStore] = None,
    feed: Optional[TradeFeed] = None,
) -> FastAPI:
    """
    Build the API process.

    The store is created here once and lives as long as the app; both the
    ingest task and the routes reach it through app.state.
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = BoundedSeriesStore(capacity=settings.history_size)

    app = FastAPI(title="Pricewatch API", version="0.1.0")
    app.state.settings = settings
    app.state.store = store
    app.state.feed = feed
    app.state.ingest_task = None
    app.include_router(api_router)

    @app.on_event("startup")
    async def _startup():
        configure_logging(settings.log_level)
        if not settings.feed_enabled:
            log.info("Feed disabled (FEED_ENABLED=false); serving store only")
            return

        # WS ingest (records every completed trade into the store)
        if app.state.feed is None:
            app.state.feed = get_feed(settings)
        app.state.ingest_task = asyncio.create_task(
            feed_ingest_loop(
                feed=app.state.feed,
                store=store,
                products=settings.products,
            )
        )

    @app.on_event("shutdown")
    async def _shutdown():
        if app.state.feed is not None:
            app.state.feed.close()
        task = app.state.ingest_task
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "app_env": settings.app_env,
            "feed_provider": settings.feed_provider,
            "feed_enabled": settings.feed_enabled,
            "history_size": store.capacity,
            "instruments": store.instruments(),
        }

    return app


app = create_app()

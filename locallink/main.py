"""
LocalLink catalog: FastAPI application entry point.
Lifespan: create DB tables → verify connectivity → build caches, connectors
and the catalog service → load the offline snapshot.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from locallink import __version__
from locallink.config import Settings, get_settings
from locallink.database import build_engine, build_session_factory, check_db_connectivity, create_tables
from locallink.exceptions import (
    BusinessNotFound,
    LocalLinkError,
    ReviewNotFound,
    ReviewPermissionError,
    ReviewPersistError,
    ReviewStoreUnavailable,
    ReviewValidationError,
    ReviewWriteConflict,
    SourceUnavailable,
)
from locallink.routers import businesses, catalog, health, recommendations, reviews
from locallink.services.cache import CatalogCache, ImageCache
from locallink.services.catalog_service import CatalogService
from locallink.services.connectors.overpass import OverpassConnector
from locallink.services.connectors.yelp import YelpConnector
from locallink.services.image_search import ImageResolver
from locallink.services.offline import OfflineSnapshot
from locallink.services.review_store import ReviewStore

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a SourceUnavailable
RETRY_AFTER_SECONDS = 60

_STATUS_BY_ERROR: dict[type[LocalLinkError], int] = {
    SourceUnavailable: 503,
    ReviewStoreUnavailable: 503,
    BusinessNotFound: 404,
    ReviewNotFound: 404,
    ReviewPermissionError: 403,
    ReviewValidationError: 400,
    ReviewWriteConflict: 409,
    ReviewPersistError: 500,
}


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application. transport replaces the network for every provider
    call (tests pass an httpx.MockTransport).
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """
        Application lifespan handler.
        1. Create the Review Store table (idempotent, IF NOT EXISTS).
        2. Verify DB connectivity.
        3. Wire caches, connectors and the catalog service onto app.state.
        """
        logger.info("Starting LocalLink catalog (env=%s)", settings.app_env)

        engine = build_engine(settings)
        session_factory = build_session_factory(engine)
        await create_tables(engine)
        logger.info("Database tables created/verified.")

        if await check_db_connectivity(session_factory):
            logger.info("Database connectivity verified.")
        else:
            logger.error("Database connectivity check FAILED at startup.")

        client = httpx.AsyncClient(
            transport=transport,
            headers={"User-Agent": f"LocalLink/{__version__}"},
        )
        catalog_cache = CatalogCache(ttl_seconds=settings.catalog_cache_ttl_seconds)
        image_cache = ImageCache(ttl_seconds=settings.image_cache_ttl_seconds)
        review_store = ReviewStore(session_factory)
        snapshot = OfflineSnapshot(settings.offline_data_dir).load()
        if settings.offline_mode and not snapshot.available:
            logger.error("OFFLINE_MODE is on but %s holds no snapshot", settings.offline_data_dir)

        app.state.session_factory = session_factory
        app.state.review_store = review_store
        app.state.catalog_cache = catalog_cache
        app.state.image_cache = image_cache
        app.state.catalog_service = CatalogService(
            settings=settings,
            overpass=OverpassConnector(
                client,
                settings.overpass_url,
                timeout_seconds=settings.provider_timeout_seconds,
                enabled=settings.overpass_enabled,
            ),
            yelp=YelpConnector(
                client,
                settings.yelp_api_key,
                base_url=settings.yelp_api_base_url,
                timeout_seconds=settings.provider_timeout_seconds,
                page_size=settings.yelp_page_size,
                max_results=settings.yelp_max_results,
            ),
            catalog_cache=catalog_cache,
            review_store=review_store,
            images=ImageResolver(
                client,
                image_cache,
                api_key=settings.google_search_api_key,
                engine_id=settings.google_search_engine_id,
                timeout_seconds=settings.image_timeout_seconds,
                max_concurrency=settings.image_search_concurrency,
            ),
            snapshot=snapshot,
        )
        logger.info(
            "Catalog ready (offline=%s, snapshot=%d businesses, yelp=%s)",
            settings.offline_mode,
            len(snapshot.businesses),
            "on" if settings.yelp_api_key else "off",
        )

        yield

        logger.info("Shutting down LocalLink catalog.")
        await client.aclose()
        await engine.dispose()

    app = FastAPI(
        title="LocalLink Catalog",
        description="Local business catalog with review overlay and recommendations.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── CORS ─────────────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ──────────────────────────────────────────────────────────────

    app.include_router(health.router)
    app.include_router(businesses.router)
    app.include_router(reviews.router)
    app.include_router(recommendations.router)
    app.include_router(catalog.router)

    snapshot_images = OfflineSnapshot(settings.offline_data_dir).images_dir
    if snapshot_images.is_dir():
        app.mount("/api/images", StaticFiles(directory=snapshot_images), name="images")

    # ── Exception handlers ───────────────────────────────────────────────────

    @app.exception_handler(LocalLinkError)
    async def locallink_error_handler(request: Request, exc: LocalLinkError) -> JSONResponse:
        """Map domain errors to their HTTP status with a machine-readable code."""
        status_code = next(
            (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
            500,
        )
        content: dict = {"detail": str(exc) or exc.code, "code": exc.code}
        headers: dict[str, str] = {}
        if isinstance(exc, SourceUnavailable):
            headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
        if isinstance(exc, (ReviewPersistError, ReviewWriteConflict)):
            content["retryable"] = True
        if status_code >= 500:
            logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content=content, headers=headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Return a machine-readable error for any unhandled exception."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "code": "CATALOG_UNAVAILABLE"},
        )

    return app


app = create_app()

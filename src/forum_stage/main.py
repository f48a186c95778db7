"""ASGI entry point: builds the forum API and mounts the v1 routers."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from forum_stage.api.v1 import feed_router, posts_router, users_router, votes_router
from forum_stage.core.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "Starting %s %s (hot epoch %s, decay %.0fs, retries %d)",
        settings.app_name,
        settings.app_version,
        settings.hot_score_epoch.isoformat(),
        settings.hot_score_decay_seconds,
        settings.vote_max_retries,
    )
    yield


def create_app() -> FastAPI:
    """Assemble middleware and routers into a new application."""
    application = FastAPI(
        title="Forum API",
        description="Votes, karma, and hot/new feeds for a forum",
        version=settings.app_version,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    # Feed pages are the largest responses.
    application.add_middleware(GZipMiddleware, minimum_size=1024)

    for router in (votes_router, feed_router, posts_router, users_router):
        application.include_router(router, prefix=API_PREFIX)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    @application.get("/")
    async def service_info() -> dict[str, str]:
        """Name, version, and where the interactive docs live."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "redoc": "/redoc",
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("forum_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

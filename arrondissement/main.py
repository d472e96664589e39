"""FastAPI entrypoint: wires config, container, routes, and lifecycle hooks."""

from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arrondissement.api.http.health import router as health_router
from arrondissement.api.http.sessions import router as sessions_router
from arrondissement.api.stream.sse import router as sse_router
from arrondissement.core.config import Settings
from arrondissement.core.container import AppContainer, build_container
from arrondissement.core.lifecycle import on_shutdown, on_startup
from arrondissement.infra.observability.logger import setup_logging


def create_app(container: AppContainer | None = None) -> FastAPI:
    if container is None:
        settings = Settings.from_env()
        setup_logging(settings.log_level, access_log=settings.access_log)
        container = build_container(settings)
    settings = container.settings

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        on_startup(container)
        try:
            yield
        finally:
            on_shutdown(container)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(sessions_router)
    app.include_router(sse_router)

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the env-driven settings."""
    settings = Settings.from_env()
    setup_logging(settings.log_level, access_log=settings.access_log)
    uvicorn.run(
        "arrondissement.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
        access_log=settings.access_log,
    )


if __name__ == "__main__":
    run()

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from tmtickets.app import App
from tmtickets.config import Config
from tmtickets.errors import SequenceContentionError, StorageError, UserError
from tmtickets.web.error_handlers import (
    contention_error_handler,
    general_exception_handler,
    storage_error_handler,
    user_error_handler,
)
from tmtickets.web.openapi import set_custom_openapi
from tmtickets.web.routers import drafts_router, reference_router, tickets_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="TM Tickets API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Liveness endpoints (at root level, outside /api)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/ping", response_class=PlainTextResponse)
    async def ping() -> str:
        return "OK"

    app.include_router(tickets_router, prefix="/api")
    app.include_router(drafts_router, prefix="/api")
    app.include_router(reference_router, prefix="/api")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(SequenceContentionError, contention_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app

"""FastAPI application factory and entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.middleware import RequestLoggingMiddleware
from app.api.routes import router as api_router
from app.api.routes.health import get_health
from app.core.config import Settings, get_settings
from app.core.database import create_db_engine, create_session_factory
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app; the engine and session factory live on app.state, not in module globals."""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    engine = create_db_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Thales API starting",
            extra={"environment": settings.APP_ENV, "api_prefix": settings.API_PREFIX},
        )
        yield
        engine.dispose()
        logger.info("Database connections closed")

    app = FastAPI(
        title="Thales API",
        description="User registration, authentication and profile management",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.CORS_ORIGIN == "*" else settings.cors_origins,
        allow_credentials=settings.CORS_ORIGIN != "*",
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    register_exception_handlers(app, settings)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    # Unprefixed health route for load balancers.
    app.add_api_route("/health", get_health, methods=["GET"], tags=["health"])

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Thales API"}

    return app


def run() -> None:
    """Console entrypoint: serve the API with uvicorn on HOST:PORT."""
    settings = get_settings()
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()

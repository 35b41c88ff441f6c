"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from raitha.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the chat services on startup and release their handles on shutdown.

    Services already set on ``app.state`` are kept, so a host can inject its
    own wiring.
    """
    from raitha.container import ChatServices
    from raitha.core.telemetry import setup_all_instrumentation
    from raitha.db.session import async_session_maker, dispose_db, init_db

    await init_db(create_tables=settings.DATABASE_CREATE_TABLES)
    setup_all_instrumentation(app)

    owns_services = getattr(app.state, "services", None) is None
    if owns_services:
        app.state.services = ChatServices.build(async_session_maker)
    logger.info(
        f"Negotiation chat ready, canonical language '{settings.CANONICAL_LANGUAGE}'"
    )

    yield

    await app.state.services.close()
    if owns_services:
        await dispose_db()


def create_app() -> FastAPI:
    """Create the negotiation chat API."""
    app = FastAPI(
        title="Raitha Negotiation API",
        description="Farmer-retailer negotiation chat with translation",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
    )

    # The mobile clients connect from arbitrary origins in development only
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.DEBUG else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from raitha.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Liveness check."""
        return {"status": "healthy"}

    return app


app = create_app()

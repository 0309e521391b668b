# api/server.py
# ============================================================================
# DJTUNEZ BACKEND: FASTAPI SERVER
# ============================================================================
# App factory: lifespan-managed service container, CORS, request timing,
# error mapping, /health and the /api routers
# ============================================================================

import re
import time
from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.container import ServiceContainer
from api.errors import register_exception_handlers
from api.routes import api_router
from config import config
from logging_config import configure_logging
from schemas import HealthResponse

logger = structlog.get_logger(component="server")


# =============================================================================
# LIFESPAN MANAGEMENT
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service container unless one was injected, close it on exit."""
    logger.info("server_starting", env=config.ENV)

    if app.state.services is None:
        app.state.services = ServiceContainer.build_default()

    yield

    logger.info("server_shutting_down")
    await app.state.services.close()


# =============================================================================
# APP FACTORY
# =============================================================================

def _add_cors(app: FastAPI) -> None:
    if config.DEBUG:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        return

    # Production only answers the first-party web host
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=rf"https?://{re.escape(config.ALLOWED_ORIGIN_HOST)}(:\d+)?",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="DJTunez API",
        description="Song-request backend: event lookups, paid queue submissions, Stripe Connect",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/documentation" if config.DEBUG else None,
        redoc_url=None,
    )
    app.state.services = services

    _add_cors(app)
    register_exception_handlers(app)

    @app.middleware("http")
    async def add_timing_header(request: Request, call_next):
        """Add response timing and request ID headers"""
        request_id = str(uuid4())[:8]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=request.method, path=request.url.path
        )
        start = time.perf_counter()

        response = await call_next(request)

        duration = (time.perf_counter() - start) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration:.2f}"
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(status="ok")

    app.include_router(api_router)
    return app


app = create_app()


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "api.server:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )

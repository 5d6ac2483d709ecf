"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from swapflow import __version__
from swapflow.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report proxy readiness on startup."""
    settings = get_settings()
    if settings.has_api_key:
        logger.info(f"Proxying 1inch for chain {settings.chain_id}")
    else:
        logger.warning("ONEINCH_API_KEY not set - all 1inch requests will return 500")
    yield


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Keep the ``{"error": ...}`` body shape for unexpected failures."""
    logger.error(f"Unhandled error on {request.url.path}: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    """Create the proxy application."""
    settings = get_settings()

    app = FastAPI(
        title="Swapflow Proxy",
        description="Credential-bearing proxy for the 1inch swap API",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # Browsers call the proxy cross-origin; only reads are exposed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug and not settings.is_production else [],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, unhandled_error)

    from swapflow.api.routes import health, oneinch

    app.include_router(health.router, tags=["Health"])
    app.include_router(oneinch.router)

    return app


# Default app instance
app = create_app()

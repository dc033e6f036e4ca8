"""Property Tour Generator: FastAPI application entry point.

Mounts the API routes, configures CORS, and renders workflow errors as
JSON envelopes carrying the vendor status and body.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tourgen import __version__
from tourgen.api.router import api_router
from tourgen.config import get_settings
from tourgen.errors import TourGenError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting up...", settings.APP_NAME)
    logger.info(
        "World Labs API: %s (key configured: %s)",
        settings.WORLDLABS_API_BASE, bool(settings.WORLDLABS_API_KEY),
    )
    yield
    logger.info("%s shut down", settings.APP_NAME)


app = FastAPI(
    title="Property Tour Generator API",
    description="Property photos, walkthrough video or panorama → navigable 3D tour",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(TourGenError)
async def tour_error_handler(request: Request, exc: TourGenError):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.get("/health")
async def health():
    """Health check."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
        "api_base": settings.WORLDLABS_API_BASE,
    }

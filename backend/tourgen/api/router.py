"""Master API router: mounts all sub-routers."""

from fastapi import APIRouter

from tourgen.api.generate import router as generate_router
from tourgen.api.metrics import router as metrics_router
from tourgen.api.status import router as status_router
from tourgen.api.tours import router as tours_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(generate_router, tags=["Generation"])
api_router.include_router(status_router, tags=["Status"])
api_router.include_router(tours_router, prefix="/tours", tags=["Tours"])
api_router.include_router(metrics_router, prefix="/metrics", tags=["Metrics"])

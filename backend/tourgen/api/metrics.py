"""Metrics API: workflow usage statistics."""

from __future__ import annotations

from fastapi import APIRouter

from tourgen.services.tour_store import get_gallery
from tourgen.services.workflow import get_workflow_metrics

router = APIRouter()


@router.get("/workflow")
async def workflow_metrics():
    """Return usage statistics for the tour workflow."""
    return {**get_workflow_metrics().get_metrics(), "gallery_size": len(get_gallery())}

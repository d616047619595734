"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from clusterseg import __version__
from clusterseg.engine.registry import get_registry
from clusterseg.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        stages_registered=get_registry().count,
    )

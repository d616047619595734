"""FastAPI app factory."""

from __future__ import annotations

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clusterseg import __version__
from clusterseg.config import configure_logging, settings

load_dotenv()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="clusterseg",
        description="Clustering segmentation: block grid, SRM regions and inside-out merging",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import all stage modules to trigger registration
    from clusterseg.engine.pipeline import load_stages

    load_stages()

    from clusterseg.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()

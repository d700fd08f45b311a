"""
FastAPI application entry point for the study spot backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.config import get_settings
from backend.dependencies import build_repository
from backend.routes import router
from backend.viewmodel import StudySpotViewModel

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.view_model = StudySpotViewModel(build_repository())
    try:
        yield
    finally:
        await app.state.view_model.aclose()


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
    )
    app = FastAPI(title="Study Spot Live", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()

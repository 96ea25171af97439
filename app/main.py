from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api import router, validation_exception_handler
from app.web import router as web_router
from datastore.factory import build_default_store
from logging_config import configure_logging
from services.readings import build_default_service
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    service = build_default_service()
    service.check_store()
    try:
        yield
    finally:
        service.shutdown()
        build_default_service.cache_clear()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="FloodNode Backend",
        description="Ingests flood-sensor readings and serves recent data and flood-risk summaries.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router)
    app.include_router(web_router)
    return app


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    logger.info("FloodNode backend listening on port %s", settings.port)
    uvicorn.run(create_app(), host=settings.host, port=settings.port, log_config=None)


app = create_app()

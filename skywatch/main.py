from __future__ import annotations

import contextlib
import logging
import time

from fastapi import FastAPI, Request

from skywatch.api import api_router
from skywatch.config import settings
from skywatch.db import init_db
from skywatch.services.pipeline import build_coordinator

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("skywatch")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the pipeline once per process."""

    init_db()
    logger.info("Database initialized")

    app.state.coordinator = build_coordinator(settings)
    logger.info(
        "Pipeline ready with %s sources (%s enabled)",
        len(settings.sources),
        sum(1 for source in settings.sources if source.enabled),
    )

    try:
        yield
    finally:
        app.state.coordinator = None
        logger.info("Pipeline shut down")


app = FastAPI(title="SkyWatch Fusion Core", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    return {"message": "SkyWatch fusion core is running"}

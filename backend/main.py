"""
Essay Scan Grader - Backend Application

FastAPI application entry point.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from essay_grader.api import api_router
from essay_grader.api.deps import get_store
from essay_grader.core.config import get_config, get_database_path, get_log_path
from essay_grader.core.database import init_db
from essay_grader.core.logging import get_logger, setup_logging


_startup_time = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Loads the store on startup and writes it back on shutdown.
    """
    global _startup_time
    _startup_time = datetime.now(timezone.utc).isoformat()
    logger = setup_logging()
    logger.info("Starting Essay Scan Grader, log file: %s", get_log_path())

    init_db()
    logger.info("Database ready: %s", get_database_path())
    get_store()

    yield

    get_store().save()
    logger.info("Store saved, shutting down")


app = FastAPI(
    title="Essay Scan Grader",
    description="AI-powered grading of scanned handwritten essays",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    get_logger().debug(
        "%s %s -> %s (%.0f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Service name and version."""
    return {
        "name": "Essay Scan Grader",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Liveness check with the process start time."""
    return {
        "status": "healthy",
        "startup_time": _startup_time,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        "main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.debug,
    )

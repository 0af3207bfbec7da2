"""Bundle conversion service - FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bundle_queue.config import settings
from bundle_queue.api.v1.router import v1_router
from bundle_queue.api.v1.health import router as health_root_router
from bundle_queue.api.v1 import jobs as jobs_api
from bundle_queue.bundles.processor import process_bundle_file
from bundle_queue.jobs.in_process_queue import ConversionQueue
from bundle_queue.storage.bundle_store import bundle_store

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("bundle_queue")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info("Starting bundle conversion service on port %d", settings.api_port)
    logger.info("Bundle dir: %s", bundle_store.base_dir)

    queue = ConversionQueue(converter=process_bundle_file)
    app.state.conversion_queue = queue
    jobs_api.set_dispatcher(queue)
    logger.info("Conversion queue ready")

    yield

    logger.info("Shutting down bundle conversion service")
    jobs_api.set_dispatcher(None)
    await queue.stop()


app = FastAPI(
    title="Bundle Conversion Service",
    description="Queue DXT and MCPB bundles and convert them into MCP server configs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_root_router, tags=["health"])  # GET /health at root
app.include_router(v1_router)  # All /api/v1/* endpoints

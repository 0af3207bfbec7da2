"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter

from bundle_queue.api.v1 import jobs as jobs_api

router = APIRouter()


@router.get("/health")
async def health_check():
    """Service health and conversion queue summary."""
    queue = jobs_api._dispatcher
    summary = None
    if queue is not None:
        summary = {
            "jobs": queue.job_count(),
            "pending": queue.pending_count,
            "draining": queue.is_draining,
        }

    return {
        "status": "healthy" if queue is not None else "starting",
        "queue": summary,
        "python_version": sys.version,
        "platform": platform.platform(),
    }

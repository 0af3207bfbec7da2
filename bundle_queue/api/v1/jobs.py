"""Job API: look up a conversion job and stream its updates."""

import asyncio
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from bundle_queue.jobs.dispatcher import ConversionDispatcher
from bundle_queue.jobs.models import ConversionJob, JobStatus

router = APIRouter()

# Set by main.py during lifespan
_dispatcher: Optional[ConversionDispatcher] = None


def set_dispatcher(dispatcher: Optional[ConversionDispatcher]) -> None:
    global _dispatcher
    _dispatcher = dispatcher


def require_dispatcher() -> ConversionDispatcher:
    if _dispatcher is None:
        raise HTTPException(status_code=503, detail="Conversion queue not initialized")
    return _dispatcher


class JobView(BaseModel):
    """Public view of a job. The raw payload is never exposed."""
    job_id: str
    status: JobStatus
    progress: int
    file_name: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: ConversionJob) -> "JobView":
        return cls(
            job_id=job.id,
            status=job.status,
            progress=job.progress,
            file_name=job.file_name,
            result=job.result.model_dump(mode="json", by_alias=True) if job.result else None,
            error=job.error,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


@router.get("/jobs/{job_id}", response_model=JobView)
async def get_job_status(job_id: str):
    """Get the current status, and result or error, of a conversion job."""
    job = require_dispatcher().get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobView.from_job(job)


async def job_event_stream(
    dispatcher: ConversionDispatcher, job_id: str
) -> AsyncIterator[Dict[str, str]]:
    """Yield one SSE message per snapshot of ``job_id`` until it is terminal.

    Starts with the current snapshot, so late subscribers still see where the
    job is. Yields nothing for an unknown job.
    """
    updates: "asyncio.Queue[ConversionJob]" = asyncio.Queue()

    def on_update(job: ConversionJob) -> None:
        if job.id == job_id:
            updates.put_nowait(job)

    # Subscribe before reading the snapshot; nothing runs in between.
    dispatcher.on_update(on_update)
    try:
        job = dispatcher.get_job(job_id)
        if job is None:
            return
        while True:
            yield {
                "event": "update",
                "data": JobView.from_job(job).model_dump_json(),
            }
            if job.status.is_terminal:
                return
            job = await updates.get()
    finally:
        dispatcher.off_update(on_update)


@router.get("/jobs/{job_id}/events")
async def stream_job_events(job_id: str, request: Request) -> EventSourceResponse:
    """Stream a job's state changes as server-sent events."""
    dispatcher = require_dispatcher()
    if dispatcher.get_job(job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")

    async def event_stream() -> AsyncIterator[Dict[str, str]]:
        async for message in job_event_stream(dispatcher, job_id):
            if await request.is_disconnected():
                return
            yield message

    return EventSourceResponse(event_stream())

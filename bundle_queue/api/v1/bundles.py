"""Bundle upload API.

  POST /bundles          queue a bundle, return the job id straight away
  POST /bundles/convert  queue a bundle and wait for its ServerConfig
"""

from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from pydantic import BaseModel

from bundle_queue.api.v1.jobs import require_dispatcher
from bundle_queue.config import settings
from bundle_queue.jobs.dispatcher import ConversionFailedError
from bundle_queue.jobs.models import JobStatus

router = APIRouter()

_CHUNK_BYTES = 1024 * 1024


class BundleSubmitResponse(BaseModel):
    job_id: str
    status: JobStatus
    message: str


async def _read_upload(file: UploadFile) -> bytes:
    """Read the upload in chunks, rejecting it once it passes the size limit."""
    data = bytearray()
    while True:
        chunk = await file.read(_CHUNK_BYTES)
        if not chunk:
            break
        data.extend(chunk)
        if len(data) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large (max {settings.max_upload_bytes} bytes)",
            )
    return bytes(data)


def _file_name(file: UploadFile) -> Optional[str]:
    return file.filename or None


@router.post("/bundles", response_model=BundleSubmitResponse)
async def submit_bundle(file: UploadFile = File(...)):
    """Queue an uploaded bundle for conversion."""
    dispatcher = require_dispatcher()
    payload = await _read_upload(file)
    job_id = dispatcher.enqueue(payload, _file_name(file))
    return BundleSubmitResponse(
        job_id=job_id,
        status=JobStatus.QUEUED,
        message="Bundle queued. Follow GET /api/v1/jobs/{id}/events for progress.",
    )


@router.post("/bundles/convert")
async def convert_bundle(file: UploadFile = File(...)):
    """Queue an uploaded bundle and return its server config once converted."""
    dispatcher = require_dispatcher()
    payload = await _read_upload(file)
    try:
        config = await dispatcher.enqueue_and_wait(payload, _file_name(file))
    except ConversionFailedError as exc:
        raise HTTPException(
            status_code=422,
            detail={"job_id": exc.job_id, "error": exc.message},
        ) from exc
    return config.model_dump(mode="json", by_alias=True)

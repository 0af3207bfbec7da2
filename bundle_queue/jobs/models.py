"""Conversion job record."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
import uuid

from bundle_queue.bundles.models import ServerConfig


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversionJob(BaseModel):
    """Tracks one submitted bundle from upload to its terminal state."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    payload: bytes = b""
    file_name: Optional[str] = None
    result: Optional[ServerConfig] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def snapshot(self) -> "ConversionJob":
        return self.model_copy(deep=True)

    def touch(self) -> None:
        self.updated_at = _utcnow()

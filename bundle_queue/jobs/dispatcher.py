"""Conversion dispatcher interface."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from bundle_queue.bundles.models import ServerConfig
from bundle_queue.jobs.models import ConversionJob


class ConversionFailedError(Exception):
    """A job reached the failed state while a caller was waiting on it."""

    def __init__(self, job_id: str, message: str):
        super().__init__(message)
        self.job_id = job_id
        self.message = message


class ConversionDispatcher(ABC):
    """Abstract interface for bundle conversion queues."""

    @abstractmethod
    def enqueue(self, payload: bytes, file_name: Optional[str] = None) -> str:
        """Queue a bundle for conversion. Returns job_id without waiting."""
        ...

    @abstractmethod
    async def enqueue_and_wait(
        self, payload: bytes, file_name: Optional[str] = None
    ) -> ServerConfig:
        """Queue a bundle and wait for its result.

        Raises ConversionFailedError when the job fails.
        """
        ...

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[ConversionJob]:
        """Snapshot of a job, or None if it never existed."""
        ...

    @abstractmethod
    def on_update(self, listener: Callable[[ConversionJob], None]) -> None:
        ...

    @abstractmethod
    def off_update(self, listener: Callable[[ConversionJob], None]) -> None:
        ...

    @property
    @abstractmethod
    def pending_count(self) -> int:
        """Number of jobs waiting behind the one in flight."""
        ...

    @property
    @abstractmethod
    def is_draining(self) -> bool:
        ...

    @abstractmethod
    def job_count(self) -> int:
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher gracefully."""
        ...

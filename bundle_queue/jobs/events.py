"""Publish/subscribe channel for job snapshots."""

import logging
import threading
from typing import Callable, Generic, List, TypeVar

from pydantic import BaseModel

logger = logging.getLogger("bundle_queue.jobs.events")

T = TypeVar("T", bound=BaseModel)

Listener = Callable[[T], None]


class UpdateChannel(Generic[T]):
    """Fans out a deep copy of each published item to every subscriber.

    Delivery follows registration order. Publishing iterates over the
    registrations present when publish starts, so listeners may subscribe
    or unsubscribe from inside a callback.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove one registration of ``listener``. Unknown listeners are ignored."""
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, item: T) -> None:
        with self._lock:
            listeners = tuple(self._listeners)
        for listener in listeners:
            try:
                listener(item.model_copy(deep=True))
            except Exception:
                logger.exception("Update listener %r raised", listener)

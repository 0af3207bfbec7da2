"""Job event stream tests."""

import json

import pytest

from bundle_queue.api.v1.jobs import job_event_stream
from bundle_queue.bundles.models import ServerConfig
from bundle_queue.jobs.events import UpdateChannel
from bundle_queue.jobs.in_process_queue import ConversionQueue


pytestmark = pytest.mark.asyncio


def _convert(payload, file_name):
    if payload == b"bad":
        raise ValueError("unreadable bundle")
    return ServerConfig(name=payload.decode())


async def _collect(queue, job_id):
    return [json.loads(m["data"]) async for m in job_event_stream(queue, job_id)]


async def test_stream_follows_job_to_completion() -> None:
    channel = UpdateChannel()
    queue = ConversionQueue(_convert, channel=channel)
    other = queue.enqueue(b"other")
    job_id = queue.enqueue(b"streamed")

    events = await _collect(queue, job_id)

    assert {e["job_id"] for e in events} == {job_id}
    assert [e["status"] for e in events] == ["queued", "processing", "processing", "completed"]
    assert events[-1]["result"]["name"] == "streamed"
    assert queue.get_job(other).status.value == "completed"
    assert channel.listener_count == 0


async def test_stream_of_finished_job_yields_final_snapshot() -> None:
    queue = ConversionQueue(_convert)
    job_id = queue.enqueue(b"bad")
    await queue.join()

    events = await _collect(queue, job_id)

    assert len(events) == 1
    assert events[0]["status"] == "failed"
    assert events[0]["error"] == "unreadable bundle"


async def test_stream_of_unknown_job_is_empty() -> None:
    channel = UpdateChannel()
    queue = ConversionQueue(_convert, channel=channel)

    assert await _collect(queue, "missing") == []
    assert channel.listener_count == 0

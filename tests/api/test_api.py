"""HTTP surface tests."""

import json
import time

import pytest
from fastapi.testclient import TestClient

from bundle_queue.config import settings
from bundle_queue.main import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _json_bundle(data) -> tuple:
    return ("server.mcpb", json.dumps(data).encode(), "application/json")


def _wait_for_terminal(client: TestClient, job_id: str) -> dict:
    for _ in range(200):
        body = client.get(f"/api/v1/jobs/{job_id}").json()
        if body["status"] in ("completed", "failed"):
            return body
        time.sleep(0.01)
    raise AssertionError(f"job {job_id} never finished")


def test_health_reports_queue(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["queue"]["pending"] == 0


def test_submit_then_poll_job(client) -> None:
    response = client.post(
        "/api/v1/bundles",
        files={"file": _json_bundle({"name": "queued-server", "command": "npx"})},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "queued"

    job = _wait_for_terminal(client, data["job_id"])
    assert job["status"] == "completed"
    assert job["progress"] == 100
    assert job["file_name"] == "server.mcpb"
    assert job["result"]["name"] == "queued-server"
    assert job["result"]["serverType"] == "local"
    assert "payload" not in job


def test_failed_job_keeps_its_error(client) -> None:
    response = client.post("/api/v1/bundles", files={"file": _json_bundle({"command": "npx"})})
    job = _wait_for_terminal(client, response.json()["job_id"])

    assert job["status"] == "failed"
    assert job["error"] == "Invalid MCPB: missing 'name'"
    assert job["result"] is None


def test_convert_returns_config(client) -> None:
    response = client.post(
        "/api/v1/bundles/convert",
        files={"file": _json_bundle({"server": {"name": "direct", "autoStart": True}})},
    )
    assert response.status_code == 200
    config = response.json()
    assert config["name"] == "direct"
    assert config["autoStart"] is True
    assert config["env"] == {}


def test_convert_failure_is_422(client) -> None:
    response = client.post(
        "/api/v1/bundles/convert",
        files={"file": ("broken.mcpb", b'{"name": ', "application/json")},
    )
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"].startswith("Invalid MCPB JSON")
    assert client.get(f"/api/v1/jobs/{detail['job_id']}").json()["status"] == "failed"


def test_unknown_job_is_404(client) -> None:
    assert client.get("/api/v1/jobs/nope").status_code == 404
    assert client.get("/api/v1/jobs/nope/events").status_code == 404


def test_oversized_upload_is_413(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_upload_bytes", 4)
    response = client.post("/api/v1/bundles", files={"file": _json_bundle({"name": "big"})})
    assert response.status_code == 413


def test_requests_before_startup_are_503() -> None:
    response = TestClient(app).get("/api/v1/jobs/anything")
    assert response.status_code == 503

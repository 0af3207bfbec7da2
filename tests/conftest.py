"""Shared fixtures and bundle builders."""

import io
import json
import zipfile
from typing import Any, Dict, Optional

import pytest

from bundle_queue.storage.bundle_store import BundleStore


@pytest.fixture
def store(tmp_path) -> BundleStore:
    return BundleStore(base_dir=str(tmp_path / "bundles"))


def make_dxt(manifest: Optional[Dict[str, Any]], files: Optional[Dict[str, bytes]] = None) -> bytes:
    """Build an in-memory DXT archive. ``manifest=None`` leaves it out."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        if manifest is not None:
            archive.writestr("manifest.json", json.dumps(manifest))
        for name, data in (files or {}).items():
            archive.writestr(name, data)
    return buf.getvalue()


def sample_manifest(**overrides: Any) -> Dict[str, Any]:
    manifest = {
        "dxt_version": "0.1",
        "name": "weather",
        "display_name": "Weather Server",
        "version": "1.2.0",
        "description": "Forecasts over MCP",
        "server": {
            "type": "node",
            "entry_point": "server/index.js",
            "mcp_config": {
                "command": "node",
                "args": ["${__dirname}/server/index.js", "--units", "${user_config.units}"],
                "env": {"API_KEY": "${user_config.api_key}"},
            },
        },
        "user_config": {
            "units": {"type": "string", "title": "Units", "default": "metric"},
            "api_key": {"type": "string", "title": "API key", "required": True},
        },
    }
    manifest.update(overrides)
    return manifest


@pytest.fixture
def build_dxt():
    return make_dxt


@pytest.fixture
def manifest() -> Dict[str, Any]:
    return sample_manifest()

"""Decoder for DXT bundles: zip archives with a ``manifest.json`` at the root."""

import io
import json
import logging
import os
import re
import zipfile
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bundle_queue.bundles.errors import (
    BundleFormatError,
    BundleValidationError,
    describe_validation_error,
)
from bundle_queue.bundles.models import ServerConfig, ServerType
from bundle_queue.config import settings
from bundle_queue.storage.bundle_store import BundleStore, bundle_store

logger = logging.getLogger("bundle_queue.bundles.dxt")

MANIFEST_NAME = "manifest.json"

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


class DxtMcpConfig(BaseModel):
    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)


class DxtServer(BaseModel):
    mcp_config: DxtMcpConfig


class DxtUserConfigOption(BaseModel):
    default: Any = None


class DxtManifest(BaseModel):
    """The subset of the DXT manifest needed to launch the server."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    display_name: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    server: DxtServer
    user_config: Dict[str, DxtUserConfigOption] = Field(default_factory=dict)


def process_dxt_file(payload: bytes, store: Optional[BundleStore] = None) -> ServerConfig:
    """Unpack a DXT archive into the bundle store and build its ServerConfig."""
    store = store or bundle_store
    try:
        archive = zipfile.ZipFile(io.BytesIO(bytes(payload)))
    except zipfile.BadZipFile as exc:
        raise BundleFormatError("Invalid DXT: not a zip archive") from exc

    with archive:
        manifest = _read_manifest(archive)
        target = os.path.realpath(store.get_bundle_dir(manifest.name))
        _extract(archive, target)

    logger.info("DXT bundle '%s' unpacked to %s", manifest.name, target)
    return _to_server_config(manifest, target)


def _read_manifest(archive: zipfile.ZipFile) -> DxtManifest:
    try:
        raw = archive.read(MANIFEST_NAME)
    except KeyError as exc:
        raise BundleValidationError(f"Invalid DXT: {MANIFEST_NAME} not found") from exc

    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BundleFormatError(f"Invalid DXT manifest: {exc}") from exc

    if not isinstance(data, dict):
        raise BundleValidationError("Invalid DXT manifest: not an object")
    if not data.get("name"):
        raise BundleValidationError("Invalid DXT manifest: missing 'name'")

    try:
        return DxtManifest.model_validate(data)
    except ValidationError as exc:
        raise BundleValidationError(
            f"Invalid DXT manifest: {describe_validation_error(exc)}"
        ) from exc


def _extract(archive: zipfile.ZipFile, root: str) -> None:
    limit = settings.max_bundle_unpacked_bytes
    unpacked = 0
    for member in archive.infolist():
        unpacked += member.file_size
        if unpacked > limit:
            raise BundleValidationError(
                f"Invalid DXT: unpacked size exceeds {limit} bytes"
            )
        dest = os.path.realpath(os.path.join(root, member.filename))
        if dest != root and not dest.startswith(root + os.sep):
            raise BundleValidationError(
                f"Invalid DXT: archive member escapes bundle directory: {member.filename}"
            )
    archive.extractall(root)


def _to_server_config(manifest: DxtManifest, bundle_dir: str) -> ServerConfig:
    def expand(value: str) -> str:
        def replace(match: "re.Match[str]") -> str:
            key = match.group(1)
            if key == "__dirname":
                return bundle_dir
            if key.startswith("user_config."):
                option = manifest.user_config.get(key[len("user_config."):])
                if option is not None and option.default is not None:
                    if isinstance(option.default, list):
                        return " ".join(str(v) for v in option.default)
                    return str(option.default)
            return match.group(0)

        return _PLACEHOLDER.sub(replace, value)

    mcp = manifest.server.mcp_config
    return ServerConfig(
        name=manifest.display_name or manifest.name,
        server_type=ServerType.LOCAL,
        command=expand(mcp.command),
        args=[expand(a) for a in mcp.args],
        env={k: expand(v) for k, v in mcp.env.items()},
        description=manifest.description,
        version=manifest.version,
    )

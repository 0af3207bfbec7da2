"""Decoder for JSON-encoded MCPB bundles."""

import json
import logging

from pydantic import ValidationError

from bundle_queue.bundles.errors import (
    BundleFormatError,
    BundleValidationError,
    describe_validation_error,
)
from bundle_queue.bundles.models import ServerConfig

logger = logging.getLogger("bundle_queue.bundles.mcpb_json")


def process_mcpb_json(payload: bytes) -> ServerConfig:
    """Parse a JSON server config, optionally wrapped as ``{"server": {...}}``."""
    try:
        return _parse(payload)
    except (BundleFormatError, BundleValidationError) as exc:
        logger.error("MCPB JSON parse failed: %s", exc)
        raise


def _parse(payload: bytes) -> ServerConfig:
    try:
        parsed = json.loads(bytes(payload).decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise BundleFormatError(f"Invalid MCPB: not UTF-8 text ({exc.reason})") from exc
    except json.JSONDecodeError as exc:
        raise BundleFormatError(f"Invalid MCPB JSON: {exc}") from exc

    config = parsed
    if isinstance(parsed, dict) and parsed.get("server"):
        config = parsed["server"]

    if not isinstance(config, dict):
        raise BundleValidationError("Invalid MCPB content: not an object")
    if not config.get("name"):
        raise BundleValidationError("Invalid MCPB: missing 'name'")

    try:
        return ServerConfig.model_validate(config)
    except ValidationError as exc:
        raise BundleValidationError(f"Invalid MCPB: {describe_validation_error(exc)}") from exc

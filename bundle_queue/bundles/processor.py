"""Unified bundle processor: DXT or MCPB JSON in, ServerConfig out."""

import logging
from typing import Optional

from bundle_queue.bundles.detector import detect_bundle_type
from bundle_queue.bundles.dxt import process_dxt_file
from bundle_queue.bundles.mcpb_json import process_mcpb_json
from bundle_queue.bundles.models import BundleType, ServerConfig
from bundle_queue.storage.bundle_store import BundleStore

logger = logging.getLogger("bundle_queue.bundles.processor")


def process_bundle_file(
    payload: bytes,
    file_name: Optional[str] = None,
    store: Optional[BundleStore] = None,
) -> ServerConfig:
    """Convert raw bundle bytes into a ServerConfig.

    Synchronous on purpose: the conversion queue runs it in a worker thread.
    Raises a BundleError subclass when the payload cannot be converted.
    """
    bundle_type = detect_bundle_type(payload, file_name)
    logger.info("Detected bundle type '%s' for '%s'", bundle_type.value, file_name or "binary")
    if bundle_type == BundleType.DXT:
        return process_dxt_file(payload, store=store)
    return process_mcpb_json(payload)

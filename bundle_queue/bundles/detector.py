"""Bundle format detection by file name hint and content sniffing."""

from typing import Optional

from bundle_queue.bundles.models import BundleType
from bundle_queue.config import settings

_ZIP_MAGIC = b"PK"


def detect_bundle_type(
    payload: bytes,
    file_name: Optional[str] = None,
    sniff_bytes: Optional[int] = None,
) -> BundleType:
    """Classify a payload as a DXT archive or an MCPB JSON document.

    The extension wins when it is conclusive. Otherwise the leading bytes
    decide: a zip signature means DXT, a ``{`` after whitespace means JSON.
    Anything else falls back to DXT so the archive decoder reports the error.
    """
    name = (file_name or "").lower()
    if name.endswith(".dxt"):
        return BundleType.DXT
    if name.endswith(".mcpb"):
        return BundleType.MCPB_JSON

    limit = sniff_bytes if sniff_bytes is not None else settings.bundle_sniff_bytes
    peek = bytes(payload[:limit])
    if peek.startswith(_ZIP_MAGIC):
        return BundleType.DXT
    if peek.decode("utf-8", errors="ignore").lstrip().startswith("{"):
        return BundleType.MCPB_JSON
    return BundleType.DXT

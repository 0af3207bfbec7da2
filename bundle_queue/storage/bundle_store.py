"""On-disk layout for unpacked archive bundles."""

import os
import re
import tempfile
from typing import Optional

from bundle_queue.config import settings

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BundleStore:
    """Manages one directory per unpacked bundle under a common base dir."""

    def __init__(self, base_dir: Optional[str] = None):
        if base_dir:
            self._base_dir = base_dir
        else:
            self._base_dir = os.path.join(tempfile.gettempdir(), "bundle_queue")
        os.makedirs(self._base_dir, exist_ok=True)

    @property
    def base_dir(self) -> str:
        return self._base_dir

    @staticmethod
    def slugify(name: str) -> str:
        slug = _UNSAFE_CHARS.sub("-", name).strip(".-")
        return slug or "bundle"

    def bundle_path(self, name: str) -> str:
        return os.path.join(self._base_dir, self.slugify(name))

    def get_bundle_dir(self, name: str) -> str:
        """Get or create the directory a bundle named ``name`` unpacks into."""
        bundle_dir = self.bundle_path(name)
        os.makedirs(bundle_dir, exist_ok=True)
        return bundle_dir

    def bundle_exists(self, name: str) -> bool:
        return os.path.isdir(self.bundle_path(name))


# Global instance
bundle_store = BundleStore(base_dir=settings.bundle_dir)

"""Bundle store tests."""

import os

from bundle_queue.storage.bundle_store import BundleStore


def test_bundle_dirs_are_created_under_base(tmp_path) -> None:
    store = BundleStore(base_dir=str(tmp_path / "root"))

    path = store.get_bundle_dir("My Server/v2")

    assert os.path.isdir(path)
    assert os.path.dirname(path) == store.base_dir
    assert os.path.basename(path) == "My-Server-v2"
    assert store.bundle_exists("My Server/v2")
    assert not store.bundle_exists("other")


def test_slugify_never_returns_empty_or_dot_names() -> None:
    assert BundleStore.slugify("..") == "bundle"
    assert BundleStore.slugify("///") == "bundle"
    assert BundleStore.slugify("ok_name-1.0") == "ok_name-1.0"

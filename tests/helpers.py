import pytest

from diskstore_lib.storage.metadata import XattrMetadataStore, detect_metadata_store


def xattr_store_or_skip(root) -> XattrMetadataStore:
    """Return an xattr metadata store for `root`, skipping when the filesystem lacks support."""
    store = detect_metadata_store(root)
    if not isinstance(store, XattrMetadataStore):
        pytest.skip("filesystem does not support user extended attributes")
    return store

"""
Storage locations for a package-hosting service.

Callers address files by a relative, repository-style path
(``files/3.0/library.zip``) and never need to know where the bytes live:

- On local disk (LocalStorage)
- In an object store bucket with a local cache (CachedRemoteStorage)
- In a bucket mounted into the filesystem (LocalStorage on the mount point)

Example usage:
    ```python
    from repo_storage import create_storage, load_config

    storage = create_storage(load_config())

    storage.import_file("/tmp/upload.zip", "files/3.0/library.zip", move=True)
    digest = storage.read_file("files/3.0/library.zip", sha256_of_file)
    storage.delete_file("files/2.9/library.zip")
    ```
"""

__version__ = "0.1.0"

from .base import StorageBackend
from .cached_remote import CachedRemoteStorage
from .config import StorageConfig, load_config
from .exceptions import (
    InvalidPathKind,
    NotFoundError,
    PreconditionError,
    StorageError,
    TransferError,
)
from .local import LocalStorage
from .object_store import ObjectStore, S3ObjectStore
from .paths import assert_absolute, assert_relative
from .selector import create_storage, get_storage, reset_storage
from .transfer import TransferHandle, wait_for_transfer

__all__ = [
    "StorageBackend",
    "LocalStorage",
    "CachedRemoteStorage",
    "ObjectStore",
    "S3ObjectStore",
    "TransferHandle",
    "wait_for_transfer",
    "StorageConfig",
    "load_config",
    "create_storage",
    "get_storage",
    "reset_storage",
    "assert_absolute",
    "assert_relative",
    "StorageError",
    "InvalidPathKind",
    "NotFoundError",
    "PreconditionError",
    "TransferError",
]

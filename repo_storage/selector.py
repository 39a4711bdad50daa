"""
Backend selection.

``create_storage`` is the factory a composition root calls once with an
explicit :class:`StorageConfig`. ``get_storage`` wraps it in a memoized,
process-wide instance for code that has nowhere to thread the backend through.
"""

import logging
import threading
from typing import Optional

from .base import StorageBackend
from .cached_remote import CachedRemoteStorage
from .config import (
    BACKEND_CACHED_REMOTE,
    BACKEND_LOCAL,
    BACKEND_MOUNTED,
    StorageConfig,
    load_config,
)
from .local import LocalStorage

logger = logging.getLogger(__name__)

_storage: Optional[StorageBackend] = None
_storage_lock = threading.Lock()


def create_storage(config: StorageConfig) -> StorageBackend:
    """
    Create the storage backend a configuration selects.

    Args:
        config: Resolved storage configuration

    Returns:
        LocalStorage rooted at ``config.root`` (nothing configured),
        LocalStorage rooted at ``config.mount_path`` (bucket mounted), or
        CachedRemoteStorage rooted at ``config.root`` (bucket + region)
    """
    kind = config.backend_kind

    if kind == BACKEND_CACHED_REMOTE:
        storage = CachedRemoteStorage(
            root=config.root,
            bucket=config.bucket,
            region=config.region,
            endpoint_url=config.endpoint_url,
            poll_interval=config.poll_interval,
            transfer_timeout=config.transfer_timeout,
            default_content_type=config.content_type,
        )
    elif kind == BACKEND_MOUNTED:
        storage = LocalStorage(config.mount_path, create_if_missing=False, mounted=True)
    elif kind == BACKEND_LOCAL:
        storage = LocalStorage(config.root)
    else:
        raise ValueError(f"Unknown storage backend: {kind}")

    logger.info(f"Using {storage.describe()}")
    return storage


def get_storage(config: Optional[StorageConfig] = None) -> StorageBackend:
    """
    Return the process-wide backend, creating it on first call.

    Args:
        config: Configuration used if the backend has not been created yet
            (default: :func:`load_config` from the environment). Ignored
            afterwards.
    """
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = create_storage(config or load_config())
    return _storage


def reset_storage() -> None:
    """Forget the process-wide backend so the next ``get_storage`` rebuilds it."""
    global _storage
    with _storage_lock:
        _storage = None

"""Local cache in front of a remote object store."""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from .base import StorageBackend
from .exceptions import NotFoundError, PreconditionError, TransferError
from .object_store import DEFAULT_CONTENT_TYPE, ObjectStore, S3ObjectStore
from .paths import PathLike, assert_relative, normalize_key
from .transfer import DEFAULT_POLL_INTERVAL, wait_for_transfer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CachedRemoteStorage(StorageBackend):
    """Storage backend that keeps the durable copy in an object store bucket.

    The directory at ``root`` is a local cache of the bucket. Object keys are
    the normalized relative paths, so ``files/3.0/library.zip`` is cached at
    ``root/files/3.0/library.zip`` and stored as ``s3://bucket/files/3.0/library.zip``.

    Consistency rules:

    - Reads make sure the object is cached before the continuation runs,
      downloading it on a cache miss. A cached file is trusted as-is; there
      is no staleness check against the bucket.
    - Writes and imports upload the local result before returning, so a
      successful return means local and remote agree.
    - Deletes remove the cached copy and then the object. Errors from the
      remote delete are logged and otherwise ignored.

    Every transfer blocks the calling thread, polling the transfer handle
    every ``poll_interval`` seconds. ``transfer_timeout`` bounds that wait and
    ``cancel_event`` aborts it; both raise ``TransferError``.

    Example:
        ```python
        storage = CachedRemoteStorage(
            root="/srv/package-cache",
            bucket="packages",
            region="eu-west-1",
        )

        # Cache miss: downloads s3://packages/files/3.0/library.zip first
        data = storage.read_file("files/3.0/library.zip", lambda p: p.read_bytes())
        ```

    Args:
        root: Local cache directory
        bucket: Bucket name
        region: Bucket region
        endpoint_url: Optional endpoint override for S3-compatible services
        object_store: Store to talk to (default: an :class:`S3ObjectStore`
            built from region/endpoint_url, created lazily)
        poll_interval: Seconds between transfer completion checks
        transfer_timeout: Maximum seconds to wait for one transfer (None = no limit)
        cancel_event: Set this event to abort in-progress waits
        default_content_type: MIME type for uploads that don't specify one
    """

    def __init__(
        self,
        root: Union[str, Path],
        bucket: str,
        region: str,
        endpoint_url: Optional[str] = None,
        object_store: Optional[ObjectStore] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        transfer_timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        default_content_type: str = DEFAULT_CONTENT_TYPE
    ):
        if not bucket:
            raise ValueError("bucket must be a non-empty string")

        root = Path(root).expanduser().resolve()
        root.mkdir(parents=True, exist_ok=True)
        super().__init__(root)

        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.poll_interval = poll_interval
        self.transfer_timeout = transfer_timeout
        self.cancel_event = cancel_event
        self.default_content_type = default_content_type
        self._object_store = object_store

        logger.debug(f"CachedRemoteStorage initialized: {self.root} <-> s3://{self.bucket}")

    @property
    def object_store(self) -> ObjectStore:
        """Remote store client, created on first use."""
        if self._object_store is None:
            self._object_store = S3ObjectStore(region=self.region, endpoint_url=self.endpoint_url)
        return self._object_store

    def key_for(self, file: PathLike) -> str:
        """Object key for a relative path."""
        assert_relative(file)
        return normalize_key(file)

    def _wait(self, handle) -> None:
        wait_for_transfer(
            handle,
            poll_interval=self.poll_interval,
            timeout=self.transfer_timeout,
            cancel_event=self.cancel_event,
        )

    def _download(self, file: PathLike, path: Path) -> None:
        key = self.key_for(file)
        logger.debug(f"Cache miss, downloading s3://{self.bucket}/{key}")

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._wait(self.object_store.download(path, self.bucket, key))
        except NotFoundError as e:
            raise NotFoundError(
                f"File not found: {file}",
                details={"bucket": self.bucket, "key": key, **e.details},
            ) from e

        # The transfer claims success; make sure the bytes actually landed
        if not path.is_file():
            raise TransferError(
                f"Download of s3://{self.bucket}/{key} reported success but {path} is missing",
                details={"bucket": self.bucket, "key": key, "path": str(path)},
            )

    def _upload(self, file: PathLike, path: Path, content_type: Optional[str]) -> None:
        key = self.key_for(file)
        content_type = content_type or self.default_content_type
        logger.debug(f"Uploading {path} to s3://{self.bucket}/{key} ({content_type})")
        self._wait(self.object_store.upload(path, self.bucket, key, content_type))

    def read_file(self, file: PathLike, continuation: Callable[[Path], T]) -> T:
        path = self.get_path(file)

        if path.is_file():
            logger.debug(f"Cache hit: {file}")
        else:
            self._download(file, path)

        return continuation(path)

    def write_file(
        self,
        file: PathLike,
        continuation: Callable[[Path], T],
        content_type: Optional[str] = None,
    ) -> T:
        path = self.get_path(file)
        path.parent.mkdir(parents=True, exist_ok=True)

        result = continuation(path)

        if not path.is_file():
            raise PreconditionError(
                f"Nothing to upload: {path} does not exist after writing {file}",
                details={"path": str(path)},
            )

        self._upload(file, path, content_type)
        return result

    def import_file(
        self,
        src: PathLike,
        dst: PathLike,
        move: bool = False,
        content_type: Optional[str] = None,
    ) -> None:
        self._check_import_paths(src, dst)
        source_path = Path(src)
        dest_path = self.get_path(dst)

        same_file = self._same_file(source_path, dest_path)
        if same_file:
            logger.debug(f"Import copy skipped, already cached: {dst}")
        else:
            self._copy_into(source_path, dest_path)

        # Upload even when the copy was skipped: the cached file may never have been pushed
        self._upload(dst, dest_path, content_type)

        if move and not same_file:
            source_path.unlink()
            logger.debug(f"Removed import source: {source_path}")

    def delete_file(self, file: PathLike) -> None:
        path = self.get_path(file)
        key = self.key_for(file)

        if path.is_file():
            path.unlink()
            logger.debug(f"Deleted from cache: {file}")

        try:
            self.object_store.delete(self.bucket, key)
        except Exception as e:
            logger.warning(f"Ignoring failed delete of s3://{self.bucket}/{key}: {e}")

    def describe(self) -> str:
        endpoint = f" via {self.endpoint_url}" if self.endpoint_url else ""
        return (
            f"cached remote storage at {self.root} "
            f"backed by s3://{self.bucket} ({self.region}){endpoint}"
        )

    def __repr__(self) -> str:
        return f"CachedRemoteStorage(root={self.root}, bucket={self.bucket}, region={self.region})"

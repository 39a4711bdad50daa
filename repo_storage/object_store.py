"""
Remote object store client used by the cached remote backend.

Only three operations are needed: download an object to a local file, upload
a local file to an object, and delete an object. Uploads and downloads return
a :class:`~repo_storage.transfer.TransferHandle` the caller can poll.

Requires: pip install boto3
Setup: aws configure (for credentials), or the usual AWS_* environment variables
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from boto3.s3.transfer import TransferConfig, create_transfer_manager

from .transfer import S3TransferHandle, TransferHandle

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ObjectStore(ABC):
    """Abstract base class for remote object stores."""

    @abstractmethod
    def download(self, local_path: Path, bucket: str, key: str) -> TransferHandle:
        """Start downloading ``bucket/key`` to ``local_path``."""
        pass

    @abstractmethod
    def upload(
        self,
        local_path: Path,
        bucket: str,
        key: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> TransferHandle:
        """Start uploading ``local_path`` to ``bucket/key``."""
        pass

    @abstractmethod
    def delete(self, bucket: str, key: str) -> None:
        """Delete ``bucket/key``. Errors propagate; CachedRemoteStorage logs and ignores them."""
        pass


class S3ObjectStore(ObjectStore):
    """Object store backed by Amazon S3 or an S3-compatible endpoint.

    The boto3 session, client and transfer manager are created on first use,
    so constructing the store never touches the network or credentials.
    Once created they live as long as the process; there is no shutdown step.

    Example:
        ```python
        store = S3ObjectStore(region="eu-west-1")
        handle = store.download(Path("/srv/cache/files/1.0/lib.zip"), "packages", "files/1.0/lib.zip")
        wait_for_transfer(handle)
        ```

    Args:
        region: AWS region name
        endpoint_url: Override for S3-compatible services (MinIO, R2, ...)
        transfer_config: boto3 ``TransferConfig`` for multipart thresholds and concurrency
    """

    def __init__(
        self,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        transfer_config: Optional[TransferConfig] = None
    ):
        self.region = region
        self.endpoint_url = endpoint_url
        self.transfer_config = transfer_config or TransferConfig()
        self._client = None
        self._transfer_manager = None

    @property
    def client(self):
        """boto3 S3 client, created lazily."""
        if self._client is None:
            session = boto3.session.Session(region_name=self.region) if self.region else boto3.session.Session()
            self._client = session.client("s3", endpoint_url=self.endpoint_url)
            logger.debug(f"S3 client created (region={self.region}, endpoint={self.endpoint_url})")
        return self._client

    @property
    def transfer_manager(self):
        """boto3 transfer manager, created lazily on top of :attr:`client`."""
        if self._transfer_manager is None:
            self._transfer_manager = create_transfer_manager(self.client, self.transfer_config)
        return self._transfer_manager

    def download(self, local_path: Path, bucket: str, key: str) -> TransferHandle:
        future = self.transfer_manager.download(bucket, key, str(local_path))
        return S3TransferHandle(future, f"download of s3://{bucket}/{key}")

    def upload(
        self,
        local_path: Path,
        bucket: str,
        key: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> TransferHandle:
        future = self.transfer_manager.upload(
            str(local_path), bucket, key,
            extra_args={"ContentType": content_type},
        )
        return S3TransferHandle(future, f"upload to s3://{bucket}/{key}")

    def delete(self, bucket: str, key: str) -> None:
        self.client.delete_object(Bucket=bucket, Key=key)

    def __repr__(self) -> str:
        return f"S3ObjectStore(region={self.region}, endpoint_url={self.endpoint_url})"

"""Pytest configuration and fixtures for repo_storage tests."""

import tempfile
import shutil
from pathlib import Path
from typing import Dict, Generator, List, Optional, Tuple

import pytest
from botocore.exceptions import ClientError

from repo_storage import CachedRemoteStorage, reset_storage
from repo_storage.object_store import DEFAULT_CONTENT_TYPE, ObjectStore
from repo_storage.transfer import MISSING_OBJECT_CODES, TransferHandle


class FakeHandle(TransferHandle):
    """Transfer handle that completes after a number of polls."""

    def __init__(self, description: str, error: Optional[BaseException] = None,
                 polls_until_done: int = 1, action=None):
        self.description = description
        self.error = error
        self.polls_until_done = polls_until_done
        self.polls = 0
        self.cancelled = False
        self._action = action
        self._ran = False

    def is_done(self) -> bool:
        if self.cancelled:
            return False
        self.polls += 1
        if self.polls_until_done is not None and self.polls >= self.polls_until_done:
            if not self._ran and self.error is None and self._action is not None:
                self._action()
            self._ran = True
            return True
        return False

    def succeeded(self) -> bool:
        return self.error is None

    def failure_detail(self) -> Optional[str]:
        return None if self.error is None else str(self.error)

    def object_missing(self) -> bool:
        if isinstance(self.error, ClientError):
            return self.error.response["Error"]["Code"] in MISSING_OBJECT_CODES
        return False

    def cancel(self) -> None:
        self.cancelled = True


def client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeObjectStore(ObjectStore):
    """In-memory object store recording every call.

    Set ``fail_download``/``fail_upload``/``fail_delete`` to an exception to
    make the next transfers of that kind fail. ``skip_download_write`` makes
    downloads report success without writing the file.
    """

    def __init__(self):
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.content_types: Dict[Tuple[str, str], str] = {}
        self.calls: List[tuple] = []
        self.fail_download: Optional[BaseException] = None
        self.fail_upload: Optional[BaseException] = None
        self.fail_delete: Optional[BaseException] = None
        self.skip_download_write = False
        self.polls_until_done = 1

    def download(self, local_path: Path, bucket: str, key: str) -> TransferHandle:
        self.calls.append(("download", str(local_path), bucket, key))

        error = self.fail_download
        if error is None and (bucket, key) not in self.objects:
            error = client_error("404", "HeadObject")

        def write():
            if not self.skip_download_write:
                Path(local_path).write_bytes(self.objects[(bucket, key)])

        return FakeHandle(f"download of {bucket}/{key}", error, self.polls_until_done, write)

    def upload(self, local_path: Path, bucket: str, key: str,
               content_type: str = DEFAULT_CONTENT_TYPE) -> TransferHandle:
        self.calls.append(("upload", str(local_path), bucket, key, content_type))
        data = Path(local_path).read_bytes()

        def store():
            self.objects[(bucket, key)] = data
            self.content_types[(bucket, key)] = content_type

        return FakeHandle(f"upload to {bucket}/{key}", self.fail_upload, self.polls_until_done, store)

    def delete(self, bucket: str, key: str) -> None:
        self.calls.append(("delete", bucket, key))
        if self.fail_delete is not None:
            raise self.fail_delete
        self.objects.pop((bucket, key), None)

    def calls_of(self, kind: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture(autouse=True)
def _reset_process_storage() -> Generator[None, None, None]:
    """Keep the process-wide backend from leaking between tests."""
    reset_storage()
    yield
    reset_storage()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory that's cleaned up after the test."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir).resolve()
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def root_dir(temp_dir: Path) -> Path:
    """Create a directory for storage roots."""
    root = temp_dir / "root"
    root.mkdir()
    return root


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    """Create a directory for files that get imported."""
    src = temp_dir / "incoming"
    src.mkdir()
    return src


@pytest.fixture
def test_content() -> bytes:
    """Generate test file content."""
    return b"PK\x03\x04 fake library archive"


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def remote_storage(root_dir: Path, object_store: FakeObjectStore) -> CachedRemoteStorage:
    """Cached remote backend talking to the in-memory store."""
    return CachedRemoteStorage(
        root=root_dir,
        bucket="packages",
        region="eu-west-1",
        object_store=object_store,
        poll_interval=0.001,
    )

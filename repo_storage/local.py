"""Local filesystem storage backend."""

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from .base import StorageBackend
from .exceptions import NotFoundError
from .paths import PathLike

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalStorage(StorageBackend):
    """Storage backend for the local filesystem.

    Stores files in a directory on disk. All file paths are treated as
    relative to ``root``. Also used when the object store bucket is mounted
    into the filesystem, in which case ``root`` is the mount point.

    Example:
        ```python
        storage = LocalStorage("/data")

        # Hands the continuation /data/files/3.0/library.zip
        storage.write_file("files/3.0/library.zip", lambda p: p.write_bytes(data))

        content = storage.read_file("files/3.0/library.zip", lambda p: p.read_bytes())
        ```

    Args:
        root: Root directory for storage. Relative roots are resolved against
            the working directory.
        create_if_missing: Create root if it doesn't exist (default: True)
    """

    def __init__(
        self,
        root: Union[str, Path],
        create_if_missing: bool = True,
        mounted: bool = False
    ):
        """Initialize local storage backend.

        Args:
            root: Root directory for storage
            create_if_missing: Create directory if it doesn't exist
            mounted: Root is a mounted object store bucket (affects ``describe()`` only)

        Raises:
            ValueError: If root doesn't exist and create_if_missing=False,
                or if root is not a directory
        """
        root = Path(root).expanduser().resolve()

        if not root.exists():
            if create_if_missing:
                root.mkdir(parents=True, exist_ok=True)
            else:
                raise ValueError(f"Root directory does not exist: {root}")

        if not root.is_dir():
            raise ValueError(f"Root path is not a directory: {root}")

        super().__init__(root)
        self.mounted = mounted
        logger.debug(f"LocalStorage initialized: {self.root}")

    def read_file(self, file: PathLike, continuation: Callable[[Path], T]) -> T:
        path = self.get_path(file)

        if not path.is_file():
            raise NotFoundError(f"File not found: {file}", details={"path": str(path)})

        return continuation(path)

    def write_file(
        self,
        file: PathLike,
        continuation: Callable[[Path], T],
        content_type: Optional[str] = None,
    ) -> T:
        path = self.get_path(file)

        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        return continuation(path)

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

        if self._same_file(source_path, dest_path):
            logger.debug(f"Import skipped, already in place: {dst}")
            return

        self._copy_into(source_path, dest_path)
        logger.debug(f"Imported {source_path} -> {dst}")

        if move:
            source_path.unlink()
            logger.debug(f"Removed import source: {source_path}")

    def delete_file(self, file: PathLike) -> None:
        path = self.get_path(file)

        if path.is_file():
            path.unlink()
            logger.debug(f"Deleted from local storage: {file}")

    def describe(self) -> str:
        if self.mounted:
            return f"local storage on mounted bucket at {self.root}"
        return f"local storage at {self.root}"

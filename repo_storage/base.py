"""
Storage abstraction for repository files.

Callers address files by a relative, repository-style path and hand the
backend a continuation that receives the concrete absolute path. The backend
decides where the bytes live and what has to happen before and after the
continuation runs, so upper layers never need to know which backend is active.
"""

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from .paths import PathLike, assert_absolute, assert_relative, resolve_under

T = TypeVar("T")


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Every backend maps a relative path onto ``root`` and implements four
    operations:

    - ``read_file``: guarantee the file exists locally while the continuation runs
    - ``write_file``: prepare the location, run the continuation, persist the result
    - ``import_file``: copy (or move) an existing absolute file into storage
    - ``delete_file``: idempotent delete

    All operations reject a path of the wrong kind (absolute vs. relative)
    with ``InvalidPathKind`` before doing any I/O.

    The variants are LocalStorage and CachedRemoteStorage; ``create_storage``
    chooses between them and rejects anything else.

    Example:
        ```python
        storage = LocalStorage("/data")

        def save(path):
            path.write_bytes(archive_bytes)

        storage.write_file("files/3.0/library.zip", save)
        size = storage.read_file("files/3.0/library.zip", lambda p: p.stat().st_size)
        ```
    """

    def __init__(self, root: Union[str, Path]):
        assert_absolute(root)
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Absolute directory all relative paths are resolved against."""
        return self._root

    def get_path(self, file: PathLike) -> Path:
        """
        Resolve a relative path to its absolute location under ``root``.

        No I/O is performed and the file need not exist.

        Raises:
            InvalidPathKind: If ``file`` is absolute
        """
        assert_relative(file)
        return resolve_under(self._root, file)

    def exists(self, file: PathLike) -> bool:
        """Check whether the file is present under ``root`` right now."""
        return self.get_path(file).is_file()

    @abstractmethod
    def read_file(self, file: PathLike, continuation: Callable[[Path], T]) -> T:
        """
        Run ``continuation`` with the absolute path of an existing file.

        Args:
            file: Relative path of the file to read
            continuation: Called with the absolute path; its result is returned

        Returns:
            Whatever ``continuation`` returns

        Raises:
            InvalidPathKind: If ``file`` is absolute
            NotFoundError: If the file does not exist (``continuation`` is not called)
        """
        pass

    @abstractmethod
    def write_file(
        self,
        file: PathLike,
        continuation: Callable[[Path], T],
        content_type: Optional[str] = None,
    ) -> T:
        """
        Run ``continuation`` with the absolute path the file should be written to.

        Missing parent directories are created first. The path may or may not
        hold prior content; the backend does not pre-populate it.

        Args:
            file: Relative path of the file to write
            continuation: Called with the absolute path; its result is returned
            content_type: MIME type recorded where the backend stores one

        Returns:
            Whatever ``continuation`` returns

        Raises:
            InvalidPathKind: If ``file`` is absolute
        """
        pass

    @abstractmethod
    def import_file(
        self,
        src: PathLike,
        dst: PathLike,
        move: bool = False,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Copy an absolute file into storage, overwriting ``dst``.

        The copy is skipped when ``src`` already is the file ``dst`` resolves
        to. With ``move=True`` the source is removed afterwards, unless it is
        that same file.

        Args:
            src: Absolute path of the file to import
            dst: Relative destination path
            move: Remove ``src`` after a successful import
            content_type: MIME type recorded where the backend stores one

        Raises:
            InvalidPathKind: If ``src`` is relative or ``dst`` is absolute
            IsADirectoryError: If ``dst`` is an existing directory
        """
        pass

    @abstractmethod
    def delete_file(self, file: PathLike) -> None:
        """
        Delete a file. Deleting a missing file is a no-op.

        Raises:
            InvalidPathKind: If ``file`` is absolute
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description of where files are kept."""
        pass

    @staticmethod
    def _same_file(src: Path, dst: Path) -> bool:
        """True when ``dst`` exists and is the same physical file as ``src``."""
        return src.exists() and dst.exists() and src.samefile(dst)

    @staticmethod
    def _copy_into(source_path: Path, dest_path: Path) -> None:
        """Copy ``source_path`` to exactly ``dest_path``, creating parent directories."""
        if dest_path.is_dir():
            raise IsADirectoryError(f"Import destination is a directory: {dest_path}")
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source_path, dest_path)

    @staticmethod
    def _check_import_paths(src: PathLike, dst: PathLike) -> None:
        assert_absolute(src)
        assert_relative(dst)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(root={self._root})"

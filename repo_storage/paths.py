"""
Path kind checks for storage operations.

Callers address files with relative, repository-style paths
(``files/3.0/library.zip``). Backends only ever hand absolute paths to the
filesystem. These helpers guard that boundary; they never normalize or touch
the disk.
"""

import os
import posixpath
from pathlib import Path, PurePosixPath
from typing import Union

from .exceptions import InvalidPathKind

PathLike = Union[str, os.PathLike]


def assert_absolute(path: PathLike) -> None:
    """
    Fail unless ``path`` is absolute.

    Raises:
        InvalidPathKind: If the path is relative
    """
    if not os.path.isabs(os.fspath(path)):
        raise InvalidPathKind(
            f"Expected an absolute path, got: {path}",
            details={"path": os.fspath(path), "expected": "absolute"},
        )


def assert_relative(path: PathLike) -> None:
    """
    Fail unless ``path`` is relative.

    Raises:
        InvalidPathKind: If the path is absolute
    """
    if os.path.isabs(os.fspath(path)) or PurePosixPath(os.fspath(path)).is_absolute():
        raise InvalidPathKind(
            f"Expected a relative path, got: {path}",
            details={"path": os.fspath(path), "expected": "relative"},
        )


def normalize_key(path: PathLike) -> str:
    """
    Normalize a relative path into a storage key.

    Separators become ``/`` and redundant ``.``/``//`` segments collapse, so
    ``files//3.0/./library.zip`` and ``files/3.0/library.zip`` share a key.

    Examples:
        >>> normalize_key('files//3.0/./library.zip')
        'files/3.0/library.zip'
    """
    raw = os.fspath(path)
    if os.sep != "/":
        raw = raw.replace(os.sep, "/")
    return posixpath.normpath(raw)


def resolve_under(root: Path, path: PathLike) -> Path:
    """Join a relative path onto ``root`` after normalizing it."""
    return root.joinpath(*normalize_key(path).split("/"))

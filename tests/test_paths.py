"""Tests for path kind checks."""

from pathlib import Path

import pytest

from repo_storage import InvalidPathKind, assert_absolute, assert_relative
from repo_storage.paths import normalize_key, resolve_under


class TestAssertAbsolute:
    """Test assert_absolute()."""

    def test_accepts_absolute_str(self):
        assert_absolute("/data/files/library.zip")

    def test_accepts_absolute_path_object(self, temp_dir: Path):
        assert_absolute(temp_dir)

    def test_rejects_relative(self):
        with pytest.raises(InvalidPathKind, match="absolute"):
            assert_absolute("files/3.0/library.zip")

    def test_error_is_a_value_error(self):
        """Callers catching ValueError still see the failure."""
        with pytest.raises(ValueError):
            assert_absolute("relative.txt")


class TestAssertRelative:
    """Test assert_relative()."""

    def test_accepts_relative(self):
        assert_relative("files/3.0/library.zip")

    def test_accepts_relative_path_object(self):
        assert_relative(Path("a") / "b.txt")

    def test_rejects_absolute(self):
        with pytest.raises(InvalidPathKind, match="relative"):
            assert_relative("/etc/passwd")

    def test_error_details(self):
        with pytest.raises(InvalidPathKind) as exc_info:
            assert_relative("/abs")
        assert exc_info.value.details == {"path": "/abs", "expected": "relative"}

    def test_does_not_normalize(self):
        """Dot segments are not rejected; the check is about kind only."""
        assert_relative("a/../b.txt")


class TestNormalizeKey:
    """Test normalize_key() and resolve_under()."""

    def test_collapses_redundant_segments(self):
        assert normalize_key("files//3.0/./library.zip") == "files/3.0/library.zip"

    def test_plain_key_unchanged(self):
        assert normalize_key("x/y.zip") == "x/y.zip"

    def test_resolve_under_root(self, temp_dir: Path):
        assert resolve_under(temp_dir, "a//b.txt") == temp_dir / "a" / "b.txt"

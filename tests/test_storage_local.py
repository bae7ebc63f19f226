"""Tests for the local directory storage adapter."""

import hashlib
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from filelock import Timeout

from cachingfs.errors import KeyNotFoundError, StorageLockError
from cachingfs.storage import Capability, LocalAdapter
from cachingfs.storage.local import TEMP_PREFIX


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def adapter(temp_dir):
    """Create a local adapter rooted in a temporary directory."""
    return LocalAdapter(temp_dir / "store")


# ============================================================================
# Basic Operations
# ============================================================================


class TestLocalAdapter:
    """Test file operations on a local directory."""

    def test_creates_root(self, temp_dir):
        """Test that the root directory is created."""
        LocalAdapter(temp_dir / "new_root")

        assert (temp_dir / "new_root").is_dir()

    def test_no_create(self, temp_dir):
        """Test that create=False leaves the root alone."""
        LocalAdapter(temp_dir / "absent", create=False)

        assert not (temp_dir / "absent").exists()

    def test_write_and_read(self, adapter):
        """Test write creates a file that can be read back."""
        adapter.write("docs/readme.txt", b"hello")

        assert adapter.read("docs/readme.txt") == b"hello"
        assert (adapter.root / "docs" / "readme.txt").read_bytes() == b"hello"

    def test_write_overwrites(self, adapter):
        """Test write replaces existing content."""
        adapter.write("a.txt", b"first")
        adapter.write("a.txt", b"second")

        assert adapter.read("a.txt") == b"second"

    def test_write_leaves_no_temp_file(self, adapter):
        """Test that the temporary file is renamed into place."""
        adapter.write("a.txt", b"data")

        assert list(adapter.root.iterdir()) == [adapter.root / "a.txt"]

    def test_write_does_not_clobber_tmp_suffixed_key(self, adapter):
        """Test that writing 'a' leaves an existing 'a.tmp' key alone."""
        adapter.write("a.tmp", b"user data")
        adapter.write("a", b"other")

        assert adapter.read("a.tmp") == b"user data"
        assert adapter.read("a") == b"other"
        assert adapter.keys() == {"a", "a.tmp"}

    def test_reserved_temp_prefix_rejected(self, adapter):
        """Test keys cannot use the temporary file prefix."""
        with pytest.raises(ValueError, match="reserved"):
            adapter.write(f"docs/{TEMP_PREFIX}x", b"data")

    def test_read_missing(self, adapter):
        """Test reading a missing key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            adapter.read("missing.txt")

    def test_read_directory_is_missing(self, adapter):
        """Test that directories are not keys."""
        adapter.write("docs/a.txt", b"data")

        with pytest.raises(KeyNotFoundError):
            adapter.read("docs")
        assert adapter.exists("docs") is False

    def test_exists(self, adapter):
        """Test exists for present and absent keys."""
        adapter.write("a.txt", b"data")

        assert adapter.exists("a.txt") is True
        assert adapter.exists("b.txt") is False

    def test_mtime(self, adapter):
        """Test mtime reports the file modification time."""
        adapter.write("a.txt", b"data")
        os.utime(adapter.root / "a.txt", (1700000000, 1700000000))

        assert adapter.mtime("a.txt") == 1700000000

    def test_mtime_missing(self, adapter):
        """Test mtime of a missing key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            adapter.mtime("missing.txt")

    def test_delete(self, adapter):
        """Test delete removes the file."""
        adapter.write("a.txt", b"data")
        adapter.delete("a.txt")

        assert adapter.exists("a.txt") is False

    def test_delete_missing(self, adapter):
        """Test deleting a missing key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            adapter.delete("missing.txt")

    def test_rename(self, adapter):
        """Test rename moves the file, creating parent directories."""
        adapter.write("a.txt", b"data")
        adapter.rename("a.txt", "archive/a.txt")

        assert adapter.read("archive/a.txt") == b"data"
        assert adapter.exists("a.txt") is False

    def test_rename_missing(self, adapter):
        """Test renaming a missing key raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            adapter.rename("missing.txt", "b.txt")

    def test_checksum(self, adapter):
        """Test checksum is the MD5 of the file content."""
        adapter.write("a.txt", b"data")

        assert adapter.checksum("a.txt") == hashlib.md5(b"data").hexdigest()

    def test_key_escaping_root_rejected(self, adapter):
        """Test keys cannot point outside the root."""
        with pytest.raises(ValueError, match="escapes"):
            adapter.write("../outside.txt", b"data")

    def test_capabilities(self, adapter):
        """Test declared capabilities."""
        assert adapter.capabilities() == {Capability.KEYS, Capability.LIST_DIRECTORY}


# ============================================================================
# Listings
# ============================================================================


class TestLocalListings:
    """Test key enumeration and directory listing."""

    def test_keys(self, adapter):
        """Test keys lists files recursively with '/' separators."""
        adapter.write("a.txt", b"1")
        adapter.write("docs/b.txt", b"2")
        adapter.write("docs/sub/c.txt", b"3")

        assert adapter.keys() == {"a.txt", "docs/b.txt", "docs/sub/c.txt"}

    def test_keys_empty(self, adapter):
        """Test keys of an empty root."""
        assert adapter.keys() == set()

    def test_list_directory(self, adapter):
        """Test listing includes nested keys and directories."""
        adapter.write("a.txt", b"1")
        adapter.write("docs/b.txt", b"2")
        adapter.write("docs/sub/c.txt", b"3")

        assert adapter.list_directory("docs") == {
            "keys": ["docs/b.txt", "docs/sub/c.txt"],
            "dirs": ["docs/sub"],
        }

    def test_list_directory_includes_empty_dirs(self, adapter):
        """Test empty directories appear in the listing."""
        (adapter.root / "empty").mkdir()
        adapter.write("a.txt", b"1")

        assert adapter.list_directory() == {"keys": ["a.txt"], "dirs": ["empty"]}


# ============================================================================
# Locking
# ============================================================================


class TestLocalLocking:
    """Test per-key write locks."""

    def test_locked_write(self, temp_dir):
        """Test writes succeed with locking enabled."""
        adapter = LocalAdapter(temp_dir / "store", lock_dir=temp_dir / "locks")
        adapter.write("a.txt", b"data")

        assert adapter.read("a.txt") == b"data"
        assert (temp_dir / "locks").is_dir()

    def test_lock_files_outside_root(self, temp_dir):
        """Test lock files do not appear as keys."""
        adapter = LocalAdapter(temp_dir / "store", lock_dir=temp_dir / "locks")
        adapter.write("a.txt", b"data")

        assert adapter.keys() == {"a.txt"}

    def test_lock_timeout(self, temp_dir):
        """Test lock timeout raises StorageLockError."""
        adapter = LocalAdapter(
            temp_dir / "store", lock_dir=temp_dir / "locks", lock_timeout=0.1
        )

        with patch("cachingfs.storage.local.FileLock") as mock_lock:
            mock_lock.return_value.__enter__.side_effect = Timeout("lock")
            with pytest.raises(StorageLockError):
                adapter.write("a.txt", b"data")

        assert adapter.exists("a.txt") is False

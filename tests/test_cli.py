"""Tests for CLI commands.

These tests verify:
- Key commands read and write through the cache
- Listing commands render source listings
- Configuration is merged from options, environment and file
- Error handling and user feedback
"""

import pytest
from click.testing import CliRunner

from cachingfs.cli.main import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove CACHINGFS_* variables from the environment."""
    for name in (
        "CACHINGFS_SOURCE",
        "CACHINGFS_CACHE_DIR",
        "CACHINGFS_SERIALIZATION_DIR",
        "CACHINGFS_TTL",
        "CACHINGFS_LOCK_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def dirs(tmp_path):
    """Create source and cache directories."""
    source = tmp_path / "source"
    source.mkdir()
    (source / "a.txt").write_bytes(b"alpha")
    (source / "docs").mkdir()
    (source / "docs" / "b.txt").write_bytes(b"beta")
    return {
        "source": source,
        "cache": tmp_path / "cache",
        "config": tmp_path / "config.json",
    }


@pytest.fixture
def invoke(dirs):
    """Invoke the CLI against the test directories."""
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(
            cli,
            [
                "--source",
                str(dirs["source"]),
                "--cache-dir",
                str(dirs["cache"]),
                "--config",
                str(dirs["config"]),
                *args,
            ],
        )

    return _invoke


class TestKeyCommands:
    """Test read, write, delete, rename and exists."""

    def test_read(self, invoke, dirs):
        """Test read prints source content and fills the cache."""
        result = invoke("read", "a.txt")

        assert result.exit_code == 0
        assert result.output == "alpha"
        assert (dirs["cache"] / "a.txt").read_bytes() == b"alpha"

    def test_read_missing(self, invoke):
        """Test read of a missing key fails."""
        result = invoke("read", "missing.txt")

        assert result.exit_code == 1
        assert "Key not found: missing.txt" in result.output

    def test_write(self, invoke, dirs):
        """Test write stores content in source and cache."""
        result = invoke("write", "new.txt", "hello")

        assert result.exit_code == 0
        assert "Wrote 5 bytes to 'new.txt'" in result.output
        assert (dirs["source"] / "new.txt").read_bytes() == b"hello"
        assert (dirs["cache"] / "new.txt").read_bytes() == b"hello"

    def test_write_from_file(self, invoke, dirs, tmp_path):
        """Test write --file uploads file content."""
        upload = tmp_path / "upload.bin"
        upload.write_bytes(b"\x00\x01\x02")

        result = invoke("write", "upload.bin", "--file", str(upload))

        assert result.exit_code == 0
        assert (dirs["source"] / "upload.bin").read_bytes() == b"\x00\x01\x02"

    def test_write_without_content(self, invoke):
        """Test write needs content or a file."""
        result = invoke("write", "new.txt")

        assert result.exit_code != 0
        assert "Provide CONTENT or --file" in result.output

    def test_delete(self, invoke, dirs):
        """Test delete removes the key from the source."""
        invoke("read", "a.txt")

        result = invoke("delete", "a.txt")

        assert result.exit_code == 0
        assert not (dirs["source"] / "a.txt").exists()
        assert not (dirs["cache"] / "a.txt").exists()

    def test_delete_missing(self, invoke):
        """Test delete of a missing key fails."""
        result = invoke("delete", "missing.txt")

        assert result.exit_code == 1
        assert "Key not found" in result.output

    def test_rename(self, invoke, dirs):
        """Test rename moves the key in source and cache."""
        invoke("read", "a.txt")

        result = invoke("rename", "a.txt", "z.txt")

        assert result.exit_code == 0
        assert (dirs["source"] / "z.txt").read_bytes() == b"alpha"
        assert (dirs["cache"] / "z.txt").read_bytes() == b"alpha"

    def test_exists(self, invoke):
        """Test exists reports source presence through the exit code."""
        assert invoke("exists", "a.txt").exit_code == 0
        assert invoke("exists", "missing.txt").exit_code == 1

    def test_status(self, invoke):
        """Test status shows the reload decision."""
        result = invoke("status", "a.txt")

        assert result.exit_code == 0
        assert "Needs reload" in result.output
        assert "yes" in result.output


class TestListingCommands:
    """Test keys and ls."""

    def test_keys(self, invoke):
        """Test keys lists every source key."""
        result = invoke("keys")

        assert result.exit_code == 0
        assert "a.txt" in result.output
        assert "docs/b.txt" in result.output

    def test_ls(self, invoke):
        """Test ls lists a directory."""
        result = invoke("ls", "docs")

        assert result.exit_code == 0
        assert "docs/b.txt" in result.output
        assert "a.txt" not in result.output

    def test_ls_outside_root(self, invoke):
        """Test ls of a directory outside the source reports an error."""
        result = invoke("ls", "../..")

        assert result.exit_code == 1
        assert "escapes storage root" in result.output
        assert "Traceback" not in result.output

    def test_exists_outside_root(self, invoke):
        """Test exists of a key outside the source reports an error."""
        result = invoke("exists", "../outside.txt")

        assert result.exit_code == 1
        assert "escapes storage root" in result.output


class TestConfigCommands:
    """Test configuration commands."""

    def test_no_source(self, tmp_path):
        """Test commands fail without a configured source."""
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--config", str(tmp_path / "config.json"), "read", "a.txt"]
        )

        assert result.exit_code == 1
        assert "No source configured" in result.output

    def test_source_from_env(self, dirs, monkeypatch):
        """Test CACHINGFS_SOURCE is used when --source is absent."""
        monkeypatch.setenv("CACHINGFS_SOURCE", str(dirs["source"]))
        runner = CliRunner()

        result = runner.invoke(
            cli,
            [
                "--cache-dir",
                str(dirs["cache"]),
                "--config",
                str(dirs["config"]),
                "read",
                "a.txt",
            ],
        )

        assert result.exit_code == 0
        assert result.output == "alpha"

    def test_malformed_config_file(self, invoke, dirs):
        """Test an unreadable config file is reported without a traceback."""
        dirs["config"].write_text("{not json")

        result = invoke("read", "a.txt")

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert not isinstance(result.exception, ValueError)

    def test_unknown_config_field(self, invoke, dirs):
        """Test unknown fields in the config file are reported."""
        dirs["config"].write_text('{"colour": "blue"}')

        result = invoke("config", "show")

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_invalid_ttl_env(self, invoke, monkeypatch):
        """Test a non-integer CACHINGFS_TTL is reported."""
        monkeypatch.setenv("CACHINGFS_TTL", "soon")

        result = invoke("read", "a.txt")

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_save_then_show(self, invoke, dirs):
        """Test saved settings are picked up from the config file."""
        result = invoke("--ttl", "90", "config", "save")
        assert result.exit_code == 0
        assert dirs["config"].exists()

        runner = CliRunner()
        result = runner.invoke(cli, ["--config", str(dirs["config"]), "config", "show"])

        assert result.exit_code == 0
        assert "90s" in result.output
        assert "source" in result.output

"""Cache configuration management."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_HOME = Path.home() / ".cachingfs_cache"
DEFAULT_CONFIG_PATH = DEFAULT_HOME / "config.json"


@dataclass
class CacheConfig:
    """Configuration for a cached storage stack.

    Attributes:
        source: Location of the authoritative store (local directory or cloud path)
        cache_dir: Directory holding cached copies of source values
        serialization_dir: Directory holding serialized listings. If None, listings
            are kept in memory and lost when the process exits.
        ttl: Time-to-live of cached entries in seconds
        lock_dir: Directory for per-key write locks (None disables locking)
        lock_timeout: Seconds to wait for a write lock
    """

    source: Optional[str] = None
    cache_dir: Path = DEFAULT_HOME / "data"
    serialization_dir: Optional[Path] = None
    ttl: int = 0
    lock_dir: Optional[Path] = None
    lock_timeout: float = 30

    def __post_init__(self):
        """Ensure directories are Path objects and TTL is valid."""
        if self.cache_dir is None:
            self.cache_dir = DEFAULT_HOME / "data"
        self.cache_dir = Path(self.cache_dir).expanduser()
        if self.serialization_dir is not None:
            self.serialization_dir = Path(self.serialization_dir).expanduser()
        if self.lock_dir is not None:
            self.lock_dir = Path(self.lock_dir).expanduser()

        self.ttl = int(self.ttl)
        if self.ttl < 0:
            raise ValueError(f"TTL must be non-negative, got {self.ttl}")

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            CacheConfig instance (defaults if the file does not exist)
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r") as f:
            data = json.load(f)

        return cls(**data)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        config_path = Path(config_path)

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "source": self.source,
            "cache_dir": str(self.cache_dir),
            "serialization_dir": (
                str(self.serialization_dir) if self.serialization_dir else None
            ),
            "ttl": self.ttl,
            "lock_dir": str(self.lock_dir) if self.lock_dir else None,
            "lock_timeout": self.lock_timeout,
        }

        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def from_env(cls, base: Optional["CacheConfig"] = None) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            CACHINGFS_SOURCE: Source location
            CACHINGFS_CACHE_DIR: Cache directory path
            CACHINGFS_SERIALIZATION_DIR: Serialized listing directory path
            CACHINGFS_TTL: TTL in seconds
            CACHINGFS_LOCK_DIR: Lock directory path

        Args:
            base: Configuration to start from (defaults if None)

        Returns:
            CacheConfig instance

        Raises:
            ValueError: If CACHINGFS_TTL is not a non-negative integer
        """
        config = base or cls()

        if os.getenv("CACHINGFS_SOURCE"):
            config.source = os.getenv("CACHINGFS_SOURCE")

        if os.getenv("CACHINGFS_CACHE_DIR"):
            config.cache_dir = Path(os.getenv("CACHINGFS_CACHE_DIR")).expanduser()

        if os.getenv("CACHINGFS_SERIALIZATION_DIR"):
            config.serialization_dir = Path(
                os.getenv("CACHINGFS_SERIALIZATION_DIR")
            ).expanduser()

        if os.getenv("CACHINGFS_TTL"):
            ttl = int(os.getenv("CACHINGFS_TTL"))
            if ttl < 0:
                raise ValueError(f"CACHINGFS_TTL must be non-negative, got {ttl}")
            config.ttl = ttl

        if os.getenv("CACHINGFS_LOCK_DIR"):
            config.lock_dir = Path(os.getenv("CACHINGFS_LOCK_DIR")).expanduser()

        return config

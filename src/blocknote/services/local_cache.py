"""Local durable cache for the working set.

The cache is a plain key/blob store. The sync engine keeps the whole working
set under a single key, so a restart (or a long offline period) can recover
exactly what the user last saw.
"""

import os
import re
from pathlib import Path
from typing import Optional, Protocol

import structlog

from blocknote.services.exceptions import LocalCacheError

logger = structlog.get_logger()

_SAFE_KEY_RE = re.compile(r"[^A-Za-z0-9._-]")


class LocalCache(Protocol):
    """Key/blob storage consumed by the sync engine."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, blob: str) -> None:
        ...


class FileLocalCache:
    """LocalCache storing one JSON file per key in a directory.

    Writes use the temp-file-rename pattern so a crash mid-write never
    leaves a truncated working set behind.

    Example:
        >>> cache = FileLocalCache(Path("~/.cache/blocknote/data").expanduser())
        >>> cache.set("blocknote-blocks", "[]")
        >>> cache.get("blocknote-blocks")
        '[]'
    """

    def __init__(self, directory: Path):
        """Initialize cache.

        Args:
            directory: Directory for cache files (created on first write)
        """
        self.directory = directory

    def path_for(self, key: str) -> Path:
        """File path backing a key."""
        return self.directory / f"{_SAFE_KEY_RE.sub('_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        """Read a blob.

        Returns:
            Stored blob, or None if the key was never written

        Raises:
            LocalCacheError: If the file exists but cannot be read
        """
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LocalCacheError(key, f"Failed to read cache file {path}: {e}") from e

    def set(self, key: str, blob: str) -> None:
        """Write a blob atomically.

        Raises:
            LocalCacheError: On any I/O failure
        """
        path = self.path_for(key)
        temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(blob, encoding="utf-8")

            # Ensure data is on disk before the rename makes it visible
            with open(temp_path, "r+", encoding="utf-8") as f:
                f.flush()
                os.fsync(f.fileno())

            temp_path.replace(path)
            logger.debug("local_cache_written", key=key, path=str(path), size=len(blob))

        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise LocalCacheError(key, f"Failed to write cache file {path}: {e}") from e

"""
Persistent key -> bytes store, one file per key.

The store knows nothing about expiry: callers keep a sibling "stale-after" entry
per logical record and check it before trusting the payload.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from check_dns_cloudflare.errors import ConfigurationError

logger = logging.getLogger(__name__)

CACHE_DIRNAME = "check_dns_cloudflare.cache"

_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


def is_writeable(path: Union[str, Path]) -> bool:
    p = Path(path)
    return p.is_dir() and os.access(p, os.W_OK)


class StateStore:
    """File-backed store rooted at <base>/check_dns_cloudflare.cache."""

    def __init__(self, base_path: Union[str, Path], dirname: str = CACHE_DIRNAME) -> None:
        base = Path(os.path.abspath(os.fspath(base_path)))

        if not base.exists():
            raise ConfigurationError(f"Cache location {base} does not exist")
        if not is_writeable(base):
            raise ConfigurationError(f"Trying to create cache in an unwriteable location: {base}")

        self.base_path = base
        self.root = base / dirname
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Unable to create cache directory {self.root}: {e}") from e

        logger.debug("Using cache directory %s", self.root)

    def _path(self, key: str) -> Path:
        if not key or not _KEY.match(key) or key in (".", ".."):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.root / key

    def read(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None when the key does not exist."""
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None

    def write(self, key: str, data: bytes) -> None:
        """
        Store bytes under key, replacing any previous value.

        Raises:
            OSError: if the entry could not be written.
        """
        target = self._path(key)
        fd, tmp = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, target)
        except OSError:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise

    def erase(self, key: str) -> None:
        """Remove key. Erasing a key that does not exist is not an error."""
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass

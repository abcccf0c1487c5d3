from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence, Tuple

from check_dns_cloudflare.errors import CacheDecodeError
from .models import CacheLookup, decode_timestamp, encode_timestamp
from .store import StateStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StalenessCheckedCache:
    """
    Shared plumbing for caches that pair each payload with a stale-after entry.

    Reads never raise: anything that goes wrong while reading is reported as a
    miss or as corruption so the caller falls back to a live fetch. Writes are
    best effort.
    """

    def __init__(self, store: StateStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self.clock = clock or utcnow

    def _check_fresh(self, stale_key: str) -> CacheLookup:
        """HIT (value = stale-after time) only if the marker decodes and lies strictly in the future."""
        try:
            raw = self.store.read(stale_key)
        except OSError as e:
            return CacheLookup.corrupt(f"{stale_key}: {type(e).__name__}: {e}")
        if raw is None:
            return CacheLookup.missing(f"{stale_key} not cached")

        try:
            stale_after = decode_timestamp(raw)
        except CacheDecodeError as e:
            return CacheLookup.corrupt(f"{stale_key}: {e}")

        now = self.clock()
        if not stale_after > now:
            return CacheLookup.missing(f"{stale_key} expired at {stale_after.isoformat()}")
        return CacheLookup.found(stale_after)

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.store.read(key)
        except OSError as e:
            raise CacheDecodeError(f"{key}: {type(e).__name__}: {e}") from e
        if raw is None:
            raise CacheDecodeError(f"{key} missing while its stale-after marker is present")
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CacheDecodeError(f"{key}: {e}") from e

    def _erase(self, keys: Sequence[str]) -> None:
        for key in keys:
            try:
                self.store.erase(key)
            except OSError as e:
                logger.warning("Unable to erase cache entry %s: %s", key, e)

    def _persist(self, entries: List[Tuple[str, bytes]]) -> bool:
        """
        Write entries in order; the stale-after marker must come last.

        Returns False (after logging) on the first failed write.
        """
        for key, data in entries:
            try:
                self.store.write(key, data)
            except OSError as e:
                logger.warning("Unable to write cache entry %s, next run will refetch: %s", key, e)
                return False
        return True

    def _stale_after_entry(self, key: str, when: datetime) -> Tuple[str, bytes]:
        return key, encode_timestamp(when)


def dump_json(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode("utf-8")

from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional

from check_dns_cloudflare.errors import CacheDecodeError
from .base import Clock, StalenessCheckedCache, dump_json
from .models import CacheLookup, IPPrefixSet, PrefixParseError, RangeSource
from .store import StateStore

logger = logging.getLogger(__name__)

KEY_V4 = "cf-ip-ranges-v4"
KEY_V6 = "cf-ip-ranges-v6"
KEY_STALE_AFTER = "cf-ip-ranges-stale-after"

RANGES_TTL = timedelta(days=30)


class RangeCache(StalenessCheckedCache):
    """
    Cloudflare's published IPv4/IPv6 ranges, refreshed every 30 days.

    The ranges change rarely and the /ips endpoint is shared by every check run,
    so a long TTL is fine.
    """

    def __init__(
        self,
        store: StateStore,
        source: RangeSource,
        ttl: timedelta = RANGES_TTL,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(store, clock=clock)
        self.source = source
        self.ttl = ttl
        self.last_lookup: Optional[CacheLookup] = None
        self.parse_errors: List[PrefixParseError] = []

    def load(self) -> IPPrefixSet:
        """
        Return the trusted ranges, from cache when fresh, otherwise from the source.

        Raises:
            UpstreamError: only when the cache missed and the source call failed.
        """
        lookup = self._lookup_cached()
        self.last_lookup = lookup
        if lookup.hit:
            logger.info("Loaded Cloudflare CIDRs from cache")
            return lookup.value

        logger.info("Cloudflare CIDR cache %s (%s), refreshing", lookup.status.value, lookup.reason)
        self._erase([KEY_STALE_AFTER, KEY_V4, KEY_V6])

        v4_raw, v6_raw = self.source.fetch_ip_ranges()
        prefixes, errors = IPPrefixSet.parse(v4_raw, v6_raw)
        self.parse_errors = errors
        for err in errors:
            logger.warning("%s", err)

        v4, v6 = prefixes.to_lists()
        self._persist(
            [
                (KEY_V4, dump_json(v4)),
                (KEY_V6, dump_json(v6)),
                self._stale_after_entry(KEY_STALE_AFTER, self.clock() + self.ttl),
            ]
        )
        return prefixes

    def _lookup_cached(self) -> CacheLookup:
        fresh = self._check_fresh(KEY_STALE_AFTER)
        if not fresh.hit:
            return fresh
        try:
            prefixes = IPPrefixSet.from_cached(self._read_json(KEY_V4), self._read_json(KEY_V6))
        except CacheDecodeError as e:
            return CacheLookup.corrupt(str(e))
        return CacheLookup.found(prefixes)

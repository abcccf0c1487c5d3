from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional

from cfapi.models import DNSRecord
from check_dns_cloudflare.errors import CacheDecodeError
from .base import Clock, StalenessCheckedCache, dump_json
from .models import CacheLookup, ZoneSnapshot, ZoneSource, domain_key
from .store import StateStore

logger = logging.getLogger(__name__)

KEY_PREFIX_ZONE_ID = "cf-zone-id-"
KEY_PREFIX_STALE_AFTER = "cf-zone-stale-after-"
KEY_PREFIX_DNS = "cf-zone-dns-"

ZONE_TTL = timedelta(minutes=5)


class ZoneRecordCache(StalenessCheckedCache):
    """
    Per-domain Cloudflare zone records, refreshed every 5 minutes.

    Each domain has three entries (zone id, stale-after marker, records) that
    expire together and independently of every other domain.
    """

    def __init__(
        self,
        store: StateStore,
        source: ZoneSource,
        ttl: timedelta = ZONE_TTL,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(store, clock=clock)
        self.source = source
        self.ttl = ttl
        self.last_lookup: Optional[CacheLookup] = None

    @staticmethod
    def keys_for(domain: str) -> List[str]:
        key = domain_key(domain)
        return [KEY_PREFIX_STALE_AFTER + key, KEY_PREFIX_ZONE_ID + key, KEY_PREFIX_DNS + key]

    def records_for(self, domain: str) -> List[DNSRecord]:
        return self.snapshot(domain).records

    def snapshot(self, domain: str) -> ZoneSnapshot:
        """
        Return the cached snapshot for domain, refetching it when stale or unreadable.

        Raises:
            UpstreamError: if the zone id lookup or the record listing fails.
        """
        key = domain_key(domain)
        lookup = self._lookup_cached(key)
        self.last_lookup = lookup
        if lookup.hit:
            logger.info("Loaded DNS records for %s from cache", domain)
            return lookup.value

        logger.info("Zone cache for %s %s (%s), querying Cloudflare", domain, lookup.status.value, lookup.reason)
        self._erase(self.keys_for(domain))

        zone_id = self.source.zone_id_by_name(domain)
        self._persist([(KEY_PREFIX_ZONE_ID + key, zone_id.encode("utf-8"))])

        records = list(self.source.list_dns_records(zone_id))
        stale_after = self.clock() + self.ttl

        self._persist(
            [
                (KEY_PREFIX_DNS + key, dump_json([r.to_dict() for r in records])),
                self._stale_after_entry(KEY_PREFIX_STALE_AFTER + key, stale_after),
            ]
        )
        return ZoneSnapshot(domain_key=key, zone_id=zone_id, records=records, stale_after=stale_after)

    def _lookup_cached(self, key: str) -> CacheLookup:
        fresh = self._check_fresh(KEY_PREFIX_STALE_AFTER + key)
        if not fresh.hit:
            return fresh

        try:
            raw = self._read_json(KEY_PREFIX_DNS + key)
            if not isinstance(raw, list):
                raise CacheDecodeError("Cached records are not a JSON array")
            records = [DNSRecord.from_dict(r) for r in raw]
        except CacheDecodeError as e:
            return CacheLookup.corrupt(str(e))

        # The zone id is informational only; a missing one does not invalidate the records.
        try:
            zone_raw = self.store.read(KEY_PREFIX_ZONE_ID + key)
        except OSError:
            zone_raw = None
        zone_id = zone_raw.decode("utf-8", errors="replace") if zone_raw else None

        return CacheLookup.found(
            ZoneSnapshot(domain_key=key, zone_id=zone_id, records=records, stale_after=fresh.value)
        )

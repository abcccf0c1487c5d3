"""
Staleness-checked persistent cache for Cloudflare API results.

Public entrypoints: StateStore, RangeCache, ZoneRecordCache
"""

from .models import CacheLookup, IPPrefixSet, LookupStatus, ZoneSnapshot
from .ranges import RangeCache
from .store import StateStore
from .zones import ZoneRecordCache

__all__ = [
    "CacheLookup",
    "IPPrefixSet",
    "LookupStatus",
    "RangeCache",
    "StateStore",
    "ZoneRecordCache",
    "ZoneSnapshot",
]

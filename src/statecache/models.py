from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from cfapi.models import DNSRecord
from check_dns_cloudflare.errors import CacheDecodeError

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


# -----------------------------
# Cache lookups
# -----------------------------

class LookupStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"  # nothing cached, or the entry went stale
    CORRUPT = "corrupt"  # something was cached but could not be decoded


@dataclass(frozen=True)
class CacheLookup:
    """
    Outcome of reading a staleness-checked entry.

    Callers treat MISS and CORRUPT the same way (refetch), the distinction only
    matters for logging and diagnostics.
    """

    status: LookupStatus
    value: Any = None
    reason: str = ""

    @property
    def hit(self) -> bool:
        return self.status is LookupStatus.HIT

    @classmethod
    def found(cls, value: Any) -> "CacheLookup":
        return cls(LookupStatus.HIT, value=value)

    @classmethod
    def missing(cls, reason: str) -> "CacheLookup":
        return cls(LookupStatus.MISS, reason=reason)

    @classmethod
    def corrupt(cls, reason: str) -> "CacheLookup":
        return cls(LookupStatus.CORRUPT, reason=reason)


def encode_timestamp(when: datetime) -> bytes:
    if when.tzinfo is None:
        raise ValueError("stale-after timestamps must be timezone-aware")
    return when.astimezone(timezone.utc).isoformat().encode("utf-8")


def decode_timestamp(raw: bytes) -> datetime:
    try:
        when = datetime.fromisoformat(raw.decode("utf-8").strip())
    except (UnicodeDecodeError, ValueError) as e:
        raise CacheDecodeError(f"Unreadable stale-after timestamp: {e}") from e
    if when.tzinfo is None:
        raise CacheDecodeError("Stale-after timestamp has no timezone")
    return when


# -----------------------------
# Cloudflare public ranges
# -----------------------------

@dataclass(frozen=True)
class PrefixParseError:
    """A single upstream CIDR string that could not be used."""

    value: str
    family: str  # v4 | v6
    reason: str

    def __str__(self) -> str:
        return f"Unable to parse {self.family} CIDR {self.value!r}: {self.reason}"


@dataclass(frozen=True)
class IPPrefixSet:
    """Trusted public address space, split by family, in upstream order."""

    v4: Tuple[ipaddress.IPv4Network, ...] = ()
    v6: Tuple[ipaddress.IPv6Network, ...] = ()

    @classmethod
    def parse(cls, v4: Iterable[str], v6: Iterable[str]) -> Tuple["IPPrefixSet", List[PrefixParseError]]:
        """
        Parse upstream CIDR strings, keeping every valid entry.

        Returns:
            (prefix set, list of per-entry errors). An entry of the wrong family
            counts as an error for the list it appeared in.
        """
        errors: List[PrefixParseError] = []
        v4_nets = _parse_family(v4, 4, "v4", errors)
        v6_nets = _parse_family(v6, 6, "v6", errors)
        return cls(v4=tuple(v4_nets), v6=tuple(v6_nets)), errors

    @classmethod
    def from_cached(cls, v4: Any, v6: Any) -> "IPPrefixSet":
        """Strict variant of parse() for cached payloads: any bad entry is corruption."""
        if not isinstance(v4, list) or not isinstance(v6, list):
            raise CacheDecodeError("Cached prefix lists are not JSON arrays")
        prefixes, errors = cls.parse([str(x) for x in v4], [str(x) for x in v6])
        if errors:
            raise CacheDecodeError(str(errors[0]))
        return prefixes

    def to_lists(self) -> Tuple[List[str], List[str]]:
        return [str(n) for n in self.v4], [str(n) for n in self.v6]


def _parse_family(values: Iterable[str], version: int, label: str, errors: List[PrefixParseError]) -> List[Any]:
    out: List[Any] = []
    for value in values:
        try:
            net = ipaddress.ip_network(str(value).strip(), strict=False)
        except ValueError as e:
            errors.append(PrefixParseError(value=str(value), family=label, reason=str(e)))
            continue
        if net.version != version:
            errors.append(PrefixParseError(value=str(value), family=label, reason=f"not an IPv{version} prefix"))
            continue
        out.append(net)
    return out


# -----------------------------
# Zone records
# -----------------------------

@dataclass
class ZoneSnapshot:
    """Everything cached for one queried domain."""

    domain_key: str
    zone_id: Optional[str]
    records: List[DNSRecord] = field(default_factory=list)
    stale_after: Optional[datetime] = None


def domain_key(domain: str) -> str:
    """Dots would read as separators in the store's key space."""
    return domain.replace(".", "_")


# -----------------------------
# Upstream collaborators
# -----------------------------

class RangeSource(Protocol):
    def fetch_ip_ranges(self) -> Tuple[Sequence[str], Sequence[str]]:
        """Return (IPv4 CIDRs, IPv6 CIDRs). Raises UpstreamError."""
        ...


class ZoneSource(Protocol):
    def zone_id_by_name(self, name: str) -> str:
        """Raises UpstreamError."""
        ...

    def list_dns_records(self, zone_id: str) -> List[DNSRecord]:
        """Raises UpstreamError."""
        ...

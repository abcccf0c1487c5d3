from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from check_dns_cloudflare.errors import CacheDecodeError


@dataclass(frozen=True)
class DNSRecord:
    """One DNS record as published in a Cloudflare zone."""

    name: str
    type: str  # A | AAAA | CNAME | anything else Cloudflare supports
    content: str
    proxied: bool = False
    ttl: int = 1  # 1 means "automatic" on Cloudflare
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "DNSRecord":
        """Build a record from a Cloudflare `dns_records` result entry."""
        return cls(
            name=str(raw.get("name") or ""),
            type=str(raw.get("type") or "").upper(),
            content=str(raw.get("content") or ""),
            proxied=bool(raw.get("proxied", False)),
            ttl=int(raw.get("ttl") or 1),
            id=raw.get("id"),
        )

    @classmethod
    def from_dict(cls, raw: Any) -> "DNSRecord":
        """
        Rebuild a record written by to_dict().

        Raises:
            CacheDecodeError: if the entry does not look like a stored record.
        """
        if not isinstance(raw, dict):
            raise CacheDecodeError(f"Expected a record object, got {type(raw).__name__}")
        try:
            return cls(
                name=str(raw["name"]),
                type=str(raw["type"]),
                content=str(raw["content"]),
                proxied=bool(raw["proxied"]),
                ttl=int(raw.get("ttl") or 1),
                id=raw.get("id"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CacheDecodeError(f"Malformed cached record: {type(e).__name__}: {e}") from e

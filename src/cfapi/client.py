"""
Thin Cloudflare REST API (v4) client.

Covers only what the check needs:
  - GET /ips                        -> public IPv4/IPv6 CIDR lists (no auth required)
  - GET /zones?name=<domain>        -> zone identifier
  - GET /zones/<id>/dns_records     -> every record in the zone (paginated)

All failures (transport errors, timeouts, non-2xx, success=false) surface as UpstreamError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from check_dns_cloudflare.errors import UpstreamError
from .models import DNSRecord

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"


class CloudflareClient:
    """Range source and zone source backed by the Cloudflare API."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        per_page: int = 100,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.per_page = int(per_page)
        self.session = session or requests.Session()

    # ----------------------------
    # Range source
    # ----------------------------

    def fetch_ip_ranges(self) -> Tuple[List[str], List[str]]:
        result = self._get("/ips", auth=False)
        if not isinstance(result, dict):
            raise UpstreamError("Unexpected /ips response shape")
        try:
            v4 = [str(c) for c in result.get("ipv4_cidrs") or []]
            v6 = [str(c) for c in result.get("ipv6_cidrs") or []]
        except TypeError as e:
            raise UpstreamError(f"Unexpected /ips response shape: {e}") from e
        return v4, v6

    # ----------------------------
    # Zone source
    # ----------------------------

    def zone_id_by_name(self, name: str) -> str:
        result = self._get("/zones", params={"name": name})
        if not isinstance(result, list) or not result:
            raise UpstreamError(f"No Cloudflare zone found for {name}")
        zone_id = result[0].get("id") if isinstance(result[0], dict) else None
        if not zone_id:
            raise UpstreamError(f"Cloudflare zone for {name} has no id")
        return str(zone_id)

    def list_dns_records(self, zone_id: str) -> List[DNSRecord]:
        records: List[DNSRecord] = []
        page = 1
        while True:
            body = self._request(
                f"/zones/{zone_id}/dns_records",
                params={"page": page, "per_page": self.per_page},
            )
            try:
                for raw in body.get("result") or []:
                    if isinstance(raw, dict):
                        records.append(DNSRecord.from_api(raw))

                info = body.get("result_info") or {}
                total_pages = int(info.get("total_pages") or 1)
            except (AttributeError, TypeError, ValueError) as e:
                raise UpstreamError(f"Unexpected dns_records response shape: {type(e).__name__}: {e}") from e
            if page >= total_pages:
                break
            page += 1

        logger.debug("Fetched %d records for zone %s", len(records), zone_id)
        return records

    # ----------------------------
    # HTTP helpers
    # ----------------------------

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None, auth: bool = True) -> Any:
        return self._request(path, params=params, auth=auth).get("result")

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None, auth: bool = True) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if auth:
            if not self.token:
                raise UpstreamError("A Cloudflare API token is required for this request")
            headers["Authorization"] = f"Bearer {self.token}"

        url = self.base_url + path
        logger.debug("GET %s params=%s", url, params)
        try:
            resp = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise UpstreamError(f"Cloudflare API request timed out after {self.timeout}s: {path}") from e
        except requests.RequestException as e:
            raise UpstreamError(f"Cloudflare API request failed: {type(e).__name__}: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Cloudflare API returned non-JSON (HTTP {resp.status_code})") from e

        if resp.status_code >= 400 or not isinstance(body, dict) or not body.get("success", False):
            raise UpstreamError(f"Cloudflare API error (HTTP {resp.status_code}): {_error_text(body)}")

        return body


def _error_text(body: Any) -> str:
    if not isinstance(body, dict):
        return "unexpected response"
    errors = body.get("errors") or []
    parts = []
    for e in errors:
        if isinstance(e, dict):
            parts.append(f"{e.get('code', '?')}: {e.get('message', '')}".strip())
        else:
            parts.append(str(e))
    return "; ".join(parts) or "unknown error"

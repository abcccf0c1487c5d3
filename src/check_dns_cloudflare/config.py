from __future__ import annotations

import functools
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import List, Optional

import dns.exception
import dns.resolver

from cfapi.client import DEFAULT_API_URL, CloudflareClient
from lookup.dig import DigResolver
from lookup.domain import zone_for_hostname
from lookup.resolver import DnspythonResolver, make_resolver
from reconcile.tool import CloudflareDNSCheck
from statecache.ranges import RangeCache
from statecache.store import StateStore
from statecache.zones import ZoneRecordCache
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

NAGIOS_VAR_DIR = "/usr/local/nagios/var/"
RESOLVERS = ("dig", "dnspython")


@dataclass
class Settings:
    api_token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    state_directory: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_token=os.getenv("CLOUDFLARE_API_TOKEN") or None,
            api_url=os.getenv("CLOUDFLARE_API_URL") or DEFAULT_API_URL,
            state_directory=os.getenv("NAGIOS_PLUGIN_STATE_DIRECTORY") or None,
        )


def cache_candidates(settings: Settings) -> List[str]:
    """Fallback cache locations, most specific first."""
    out: List[str] = []
    if settings.state_directory:
        out.append(settings.state_directory)
    out.append(NAGIOS_VAR_DIR)
    out.append(tempfile.gettempdir())
    return out


def open_cache_store(settings: Settings, explicit_path: Optional[str] = None) -> StateStore:
    """
    Open the cache store.

    An explicit path must work. Otherwise each candidate is tried in turn and
    failures are only logged.

    Raises:
        ConfigurationError: when no usable location was found.
    """
    if explicit_path:
        return StateStore(explicit_path)

    last_error: Optional[ConfigurationError] = None
    for candidate in cache_candidates(settings):
        try:
            return StateStore(candidate)
        except ConfigurationError as e:
            logger.warning("Error trying cache location %s: %s", candidate, e)
            last_error = e

    raise ConfigurationError(f"Unable to determine a usable cache path. Please provide one. Error: {last_error}")


def build_resolver(kind: str = "dig", timeout: int = 10, server: Optional[str] = None):
    if kind == "dig":
        return DigResolver(timeout=timeout, server=server)
    if kind == "dnspython":
        return DnspythonResolver(timeout=timeout, server=server)
    raise ConfigurationError(f"Unknown resolver {kind!r}, expected one of {', '.join(RESOLVERS)}")


def build_zone_finder(timeout: int = 10, server: Optional[str] = None):
    """Zone discovery bounded by the check timeout, asking server when it is an address."""
    resolver = None
    if server:
        try:
            resolver = make_resolver(timeout, server)
        except ValueError as e:
            # dig accepts a server name, dnspython only addresses
            logger.warning("Zone discovery cannot use DNS server %s, using the system resolver: %s", server, e)
    if resolver is None:
        try:
            resolver = make_resolver(timeout)
        except dns.exception.DNSException as e:
            # without nameservers discovery falls back to the hostname itself
            logger.warning("No system resolver configuration for zone discovery: %s", e)
            resolver = dns.resolver.Resolver(configure=False)
            resolver.lifetime = float(timeout)
    return functools.partial(zone_for_hostname, resolver=resolver)


def build_check(
    settings: Settings,
    timeout: int = 10,
    resolver: str = "dig",
    cache_path: Optional[str] = None,
    only_dns: bool = False,
    dns_server: Optional[str] = None,
) -> CloudflareDNSCheck:
    """
    Wire the check together: one store, one client, both caches.

    With only_dns nothing talks to Cloudflare, so neither a token nor a cache
    location is needed.
    """
    dns_resolver = build_resolver(resolver, timeout=timeout)
    if only_dns:
        return CloudflareDNSCheck(resolver=dns_resolver)

    if not settings.api_token:
        raise ConfigurationError("You must set the CLOUDFLARE_API_TOKEN variable")

    store = open_cache_store(settings, cache_path)
    client = CloudflareClient(token=settings.api_token, base_url=settings.api_url, timeout=timeout)
    return CloudflareDNSCheck(
        resolver=dns_resolver,
        ranges=RangeCache(store, client),
        zones=ZoneRecordCache(store, client),
        zone_finder=build_zone_finder(timeout, dns_server),
    )

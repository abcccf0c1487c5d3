from __future__ import annotations

import logging
from typing import Optional

import dns.exception
import dns.name
import dns.resolver

logger = logging.getLogger(__name__)


def zone_for_hostname(hostname: str, resolver: Optional[dns.resolver.Resolver] = None) -> str:
    """
    Return the name of the DNS zone that contains hostname.

    Walks up the name with SOA queries (dnspython's zone_for_name). If the zone
    cannot be determined, the hostname itself is returned so the caller can still
    try it as a zone name.
    """
    name = hostname.strip().rstrip(".")
    try:
        zone = dns.resolver.zone_for_name(dns.name.from_text(name + "."), resolver=resolver)
    except (dns.exception.DNSException, ValueError) as e:
        logger.warning("Unable to determine zone for %s, using it as-is: %s", name, e)
        return name

    zone_text = zone.to_text(omit_final_dot=True)
    logger.debug("Zone for %s is %s", name, zone_text)
    return zone_text

from __future__ import annotations

import ipaddress
from typing import Sequence, Union

from statecache.models import IPNetwork, IPPrefixSet

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def to_address(address: Union[str, IPAddress]) -> IPAddress:
    """
    Parse an address, unwrapping IPv4-mapped IPv6 (::ffff:a.b.c.d) to IPv4.

    Raises:
        ValueError: if address is not an IP address.
    """
    ip = ipaddress.ip_address(address.strip() if isinstance(address, str) else address)
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def contains(address: Union[str, IPAddress], prefixes: Sequence[IPNetwork]) -> bool:
    """True if any prefix contains address. Prefixes of the other family never match."""
    ip = to_address(address)
    for net in prefixes:
        if net.version == ip.version and ip in net:
            return True
    return False


def prefixes_for(address: Union[str, IPAddress], prefix_set: IPPrefixSet) -> Sequence[IPNetwork]:
    return prefix_set.v4 if to_address(address).version == 4 else prefix_set.v6


def in_trusted_ranges(address: Union[str, IPAddress], prefix_set: IPPrefixSet) -> bool:
    return contains(address, prefixes_for(address, prefix_set))

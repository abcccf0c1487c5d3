from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import dns.exception
import dns.resolver

from check_dns_cloudflare.errors import ResolutionError
from .dig import normalize_answers

logger = logging.getLogger(__name__)


def make_resolver(timeout: float, server: Optional[str] = None) -> dns.resolver.Resolver:
    """A dnspython resolver bounded by timeout, optionally pinned to one nameserver."""
    # an explicit server needs no /etc/resolv.conf
    r = dns.resolver.Resolver(configure=server is None)
    r.timeout = float(timeout)
    r.lifetime = float(timeout)
    if server:
        r.nameservers = [server]
    return r


class DnspythonResolver:
    """
    In-process alternative to DigResolver for hosts without BIND tools.

    Produces the same shape of output as `dig +short`: one presentation-format
    rdata per line, normalized and sorted.
    """

    name = "dnspython"

    def __init__(self, timeout: float = 10.0, server: Optional[str] = None) -> None:
        self.timeout = float(timeout)
        self.server = server

    def _resolver(self, server: Optional[str]) -> dns.resolver.Resolver:
        return make_resolver(self.timeout, server or self.server)

    def lookup(self, hostname: str, qtypes: Sequence[str], server: Optional[str] = None) -> List[str]:
        """
        Raises:
            ResolutionError: on timeout or any resolver failure other than NXDOMAIN / no answer.
        """
        resolver = self._resolver(server)
        fqdn = hostname.rstrip(".") + "."
        answers: List[str] = []

        for qtype in qtypes:
            logger.info("Resolving %s %s via dnspython", fqdn, qtype)
            try:
                ans = resolver.resolve(fqdn, qtype, raise_on_no_answer=False)
            except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
                continue
            except dns.exception.Timeout as e:
                raise ResolutionError(f"DNS lookup of {fqdn} {qtype} timed out after {self.timeout}s") from e
            except dns.exception.DNSException as e:
                raise ResolutionError(f"DNS lookup of {fqdn} {qtype} failed: {type(e).__name__}: {e}") from e

            answers.extend(rdata.to_text() for rdata in (ans.rrset or []))

        return normalize_answers(answers)

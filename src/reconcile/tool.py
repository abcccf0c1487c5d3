from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol, Sequence

from check_dns_cloudflare.errors import UpstreamError
from lookup.domain import zone_for_hostname
from statecache.ranges import RangeCache
from statecache.zones import ZoneRecordCache
from .models import CRITICAL, CheckResult, ExpectationSet, Finding
from .reconciler import RecordReconciler

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TYPE = "A"


class Resolver(Protocol):
    def lookup(self, hostname: str, qtypes: Sequence[str], server: Optional[str] = None) -> List[str]:
        ...


class CloudflareDNSCheck:
    """
    Check one hostname against its Cloudflare zone and against live DNS.

    API part (skipped with only_dns):
      - load the zone's records through the zone cache
      - reconcile records named <hostname> with the expected contents
      - learn whether the hostname is proxied
    DNS part (skipped with only_api):
      - proxied: resolve A+AAAA and require every address in Cloudflare's ranges
      - not proxied: resolve the query type and compare with the expected values

    ResolutionError and range-cache UpstreamError propagate to the caller; a
    failing zone lookup is reported as a CRITICAL finding.
    """

    def __init__(
        self,
        resolver: Resolver,
        ranges: Optional[RangeCache] = None,
        zones: Optional[ZoneRecordCache] = None,
        reconciler: Optional[RecordReconciler] = None,
        zone_finder: Callable[[str], str] = zone_for_hostname,
    ) -> None:
        self.resolver = resolver
        self.ranges = ranges
        self.zones = zones
        self.reconciler = reconciler or RecordReconciler()
        self.zone_finder = zone_finder

    def check_host(
        self,
        hostname: str,
        expected: Optional[Sequence[str]] = None,
        query_type: Optional[str] = None,
        zone: Optional[str] = None,
        dns_server: Optional[str] = None,
        only_api: bool = False,
        only_dns: bool = False,
    ) -> CheckResult:
        out = CheckResult(hostname=hostname)
        started = time.perf_counter()
        expected = list(expected or [])

        if not only_dns:
            if not self._api_part(out, hostname, expected, query_type, zone):
                out.finalize_overall()
                out.observations["timing_ms"] = int((time.perf_counter() - started) * 1000)
                return out

        if not only_api:
            self._dns_part(out, hostname, expected, query_type, dns_server)

        out.finalize_overall()
        out.observations["timing_ms"] = int((time.perf_counter() - started) * 1000)
        return out

    def _api_part(
        self,
        out: CheckResult,
        hostname: str,
        expected: List[str],
        query_type: Optional[str],
        zone: Optional[str],
    ) -> bool:
        if self.zones is None:
            raise ValueError("A zone record cache is required unless only_dns is set")

        out.zone = zone or self.zone_finder(hostname)
        try:
            records = self.zones.records_for(out.zone)
        except UpstreamError as e:
            out.findings.append(
                Finding(
                    hostname=hostname,
                    issue="API_QUERY_FAILED",
                    severity=CRITICAL,
                    detail="Unable to query Cloudflare DNS records",
                    data={"zone": out.zone, "error": str(e)},
                )
            )
            return False

        if self.zones.last_lookup is not None:
            out.observations["zone_cache"] = self.zones.last_lookup.status.value

        match = self.reconciler.reconcile_records(
            hostname, records, expected=ExpectationSet(expected), query_type=query_type
        )
        out.proxied = match.proxied
        out.findings.extend(match.findings)
        return True

    def _dns_part(
        self,
        out: CheckResult,
        hostname: str,
        expected: List[str],
        query_type: Optional[str],
        dns_server: Optional[str],
    ) -> None:
        if out.proxied:
            if self.ranges is None:
                raise ValueError("A range cache is required to check proxied hostnames")
            answers = self.resolver.lookup(hostname, ["A", "AAAA"], server=dns_server)
            prefixes = self.ranges.load()
            if self.ranges.last_lookup is not None:
                out.observations["range_cache"] = self.ranges.last_lookup.status.value
            if self.ranges.parse_errors:
                out.observations["range_parse_errors"] = [str(e) for e in self.ranges.parse_errors]
            out.findings.extend(self.reconciler.verify_proxied_answers(hostname, answers, prefixes))
        else:
            qtype = (query_type or DEFAULT_QUERY_TYPE).upper()
            answers = self.resolver.lookup(hostname, [qtype], server=dns_server)
            out.findings.extend(self.reconciler.verify_direct_answers(hostname, answers, expected))

        out.observations["answers"] = answers
        logger.debug("Resolver answers for %s: %s", hostname, answers)

"""
Decide whether observed DNS state matches what is expected.

Two views of a hostname are reconciled:
  - the Cloudflare API view (zone records), which also tells us whether the
    hostname is proxied through Cloudflare;
  - the resolver view (what the world actually sees).

When the hostname is proxied the resolver returns Cloudflare edge addresses,
so those are checked for membership in Cloudflare's published ranges instead
of being compared to the origin values.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from cfapi.models import DNSRecord
from statecache.models import IPPrefixSet
from .cidr import in_trusted_ranges
from .models import CRITICAL, OK, ExpectationSet, Finding, RecordMatch, flatten_expected

SUPPORTED_TYPES = frozenset({"A", "AAAA", "CNAME"})


class RecordReconciler:
    def select_records(
        self,
        hostname: str,
        records: Iterable[DNSRecord],
        query_type: Optional[str] = None,
    ) -> List[DNSRecord]:
        """Records named hostname, of a supported type, matching query_type when one is given."""
        qtype = (query_type or "").upper()
        out: List[DNSRecord] = []
        for r in records:
            if r.name != hostname:
                continue
            rtype = r.type.upper()
            if (qtype and rtype != qtype) or rtype not in SUPPORTED_TYPES:
                continue
            out.append(r)
        return out

    def reconcile_records(
        self,
        hostname: str,
        records: Iterable[DNSRecord],
        expected: Optional[ExpectationSet] = None,
        query_type: Optional[str] = None,
    ) -> RecordMatch:
        """
        Compare the zone's records for hostname with the expected contents.

        If several records share the name and any of them is proxied, the whole
        hostname is treated as proxied.
        """
        match = RecordMatch(hostname=hostname)
        match.records = self.select_records(hostname, records, query_type)
        has_expectations = expected is not None and len(expected) > 0

        for r in match.records:
            match.proxied = match.proxied or r.proxied

            if not has_expectations:
                match.matched.append(r.content)
            elif expected.mark(r.content):
                match.matched.append(r.content)
            else:
                match.findings.append(
                    Finding(
                        hostname=hostname,
                        issue="UNEXPECTED_CONTENT",
                        severity=CRITICAL,
                        detail=f"Found unexpected DNS {r.type} record: {r.content}",
                        data={"record": r.to_dict()},
                    )
                )

        if has_expectations:
            missing = expected.missing()
            for wanted in missing:
                match.findings.append(
                    Finding(
                        hostname=hostname,
                        issue="MISSING_CONTENT",
                        severity=CRITICAL,
                        detail=f"CF API missing expected DNS content {wanted}",
                        data={"expected": wanted},
                    )
                )
            if not missing:
                match.findings.append(self._ok(hostname, "API_RECORDS_OK", ",".join(match.matched), match))
        elif match.matched:
            match.findings.append(self._ok(hostname, "API_RECORDS_OK", ",".join(match.matched), match))
        else:
            match.findings.append(
                Finding(
                    hostname=hostname,
                    issue="NO_API_RECORD",
                    severity=CRITICAL,
                    detail=f"CF API does not have DNS record for {hostname}",
                )
            )

        return match

    def verify_proxied_answers(self, hostname: str, answers: Sequence[str], prefixes: IPPrefixSet) -> List[Finding]:
        """Every resolved address must sit inside Cloudflare's ranges for its family."""
        if not answers:
            return [
                Finding(hostname=hostname, issue="NO_DNS_ANSWER", severity=CRITICAL, detail="No DNS A+AAAA records found")
            ]

        findings: List[Finding] = []
        for answer in answers:
            try:
                trusted = in_trusted_ranges(answer, prefixes)
            except ValueError:
                findings.append(
                    Finding(
                        hostname=hostname,
                        issue="UNPARSEABLE_ADDRESS",
                        severity=CRITICAL,
                        detail=f"Failed to parse IP `{answer}`",
                        data={"answer": answer},
                    )
                )
                continue
            if not trusted:
                findings.append(
                    Finding(
                        hostname=hostname,
                        issue="OUTSIDE_TRUSTED_RANGE",
                        severity=CRITICAL,
                        detail=f"IP `{answer}` does not belong to CloudFlare",
                        data={"answer": answer},
                    )
                )

        if not findings:
            findings.append(
                Finding(
                    hostname=hostname,
                    issue="DNS_RESULTS_OK",
                    severity=OK,
                    detail=f"Results: {','.join(answers)}",
                    data={"answers": list(answers)},
                )
            )
        return findings

    def verify_direct_answers(
        self,
        hostname: str,
        answers: Sequence[str],
        expected: Optional[Iterable[str]] = None,
    ) -> List[Finding]:
        """Exact, order-independent comparison of resolver answers with the expected values."""
        want = sorted(_strip_dot(v) for v in flatten_expected(expected))
        got = sorted(_strip_dot(a) for a in answers)

        if want and got != want:
            return [
                Finding(
                    hostname=hostname,
                    issue="DNS_MISMATCH",
                    severity=CRITICAL,
                    detail=(
                        "DNS lookup result different from expected. "
                        f"Expected: {','.join(want)} Got: {','.join(got)}"
                    ),
                    data={"expected": want, "answers": got},
                )
            ]
        if not got:
            return [Finding(hostname=hostname, issue="NO_DNS_ANSWER", severity=CRITICAL, detail="No DNS records found")]

        return [
            Finding(
                hostname=hostname,
                issue="DNS_RESULTS_OK",
                severity=OK,
                detail=f"Results: {','.join(got)}",
                data={"answers": got},
            )
        ]

    @staticmethod
    def _ok(hostname: str, issue: str, detail: str, match: RecordMatch) -> Finding:
        return Finding(
            hostname=hostname,
            issue=issue,
            severity=OK,
            detail=detail,
            data={"proxied": match.proxied, "records": [r.to_dict() for r in match.records]},
        )


def _strip_dot(value: str) -> str:
    return value[:-1] if value.endswith(".") else value

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from cfapi.models import DNSRecord
from check_dns_cloudflare.errors import ReconciliationFailure

# Nagios plugin statuses. When results are rolled up the precedence is
# ok < unknown < warning < critical.
OK = "ok"
WARNING = "warning"
CRITICAL = "critical"
UNKNOWN = "unknown"

EXIT_CODES = {OK: 0, WARNING: 1, CRITICAL: 2, UNKNOWN: 3}
_RANK = {OK: 0, UNKNOWN: 1, WARNING: 2, CRITICAL: 3}


def worst(statuses: Iterable[str]) -> Optional[str]:
    ranked = sorted(statuses, key=lambda s: _RANK.get(s, _RANK[UNKNOWN]))
    return ranked[-1] if ranked else None


@dataclass
class Finding:
    hostname: str
    issue: str
    severity: str = CRITICAL  # ok | warning | critical | unknown
    detail: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CheckResult:
    hostname: str
    zone: Optional[str] = None
    proxied: bool = False
    overall: str = UNKNOWN
    findings: List[Finding] = field(default_factory=list)
    observations: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["findings"] = [f.to_dict() for f in self.findings]
        return d

    def finalize_overall(self) -> None:
        # worst finding wins; a check that produced nothing proved nothing
        self.overall = worst(f.severity for f in self.findings) or UNKNOWN

    @property
    def exit_code(self) -> int:
        return EXIT_CODES.get(self.overall, EXIT_CODES[UNKNOWN])

    def messages(self) -> List[str]:
        """Details of the findings that decided the overall status."""
        return [f.detail for f in self.findings if f.severity == self.overall and f.detail]

    def raise_for_status(self) -> None:
        """Raise ReconciliationFailure when the check ended CRITICAL."""
        if self.overall == CRITICAL:
            raise ReconciliationFailure("; ".join(self.messages()) or "DNS check failed", result=self)


class ExpectationSet:
    """
    Expected record contents, each with an "observed" flag.

    Built once from user input (entries may be comma-joined) and never grows
    afterwards: only existing keys can be marked.
    """

    def __init__(self, values: Iterable[str] = ()) -> None:
        self._seen: Dict[str, bool] = dict.fromkeys(flatten_expected(values), False)

    def __contains__(self, content: object) -> bool:
        return content in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def __iter__(self) -> Iterator[str]:
        return iter(self._seen)

    def mark(self, content: str) -> bool:
        """Flag content as observed. Returns False if it was not expected."""
        if content not in self._seen:
            return False
        self._seen[content] = True
        return True

    def missing(self) -> List[str]:
        return [k for k, seen in self._seen.items() if not seen]

    def observed(self) -> List[str]:
        return [k for k, seen in self._seen.items() if seen]


def flatten_expected(values: Optional[Iterable[str]]) -> List[str]:
    """Split comma-joined entries; blank pieces are dropped, duplicates kept."""
    out: List[str] = []
    for v in values or []:
        for piece in str(v).split(","):
            piece = piece.strip()
            if piece:
                out.append(piece)
    return out


@dataclass
class RecordMatch:
    """What the Cloudflare API says about one hostname."""

    hostname: str
    proxied: bool = False
    records: List[DNSRecord] = field(default_factory=list)
    matched: List[str] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)

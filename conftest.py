from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from cfapi.models import DNSRecord
from check_dns_cloudflare.errors import UpstreamError
from statecache.store import StateStore


# ----------------------------
# Fakes
# ----------------------------
class FakeClock:
    """Injectable 'now' for staleness tests."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeRangeSource:
    def __init__(self, v4: Sequence[str] = (), v6: Sequence[str] = (), error: Optional[Exception] = None):
        self.v4 = list(v4)
        self.v6 = list(v6)
        self.error = error
        self.calls = 0

    def fetch_ip_ranges(self) -> Tuple[List[str], List[str]]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.v4), list(self.v6)


class FakeZoneSource:
    def __init__(
        self,
        zones: Optional[Dict[str, str]] = None,
        records: Optional[Dict[str, List[DNSRecord]]] = None,
        records_error: Optional[Exception] = None,
    ):
        self.zones = zones or {}
        self.records = records or {}
        self.records_error = records_error
        self.zone_calls: List[str] = []
        self.record_calls: List[str] = []

    def zone_id_by_name(self, name: str) -> str:
        self.zone_calls.append(name)
        if name not in self.zones:
            raise UpstreamError(f"No Cloudflare zone found for {name}")
        return self.zones[name]

    def list_dns_records(self, zone_id: str) -> List[DNSRecord]:
        self.record_calls.append(zone_id)
        if self.records_error:
            raise self.records_error
        return list(self.records.get(zone_id, []))


class FakeResolver:
    """Returns canned answers keyed by (hostname, tuple(qtypes)) and records every call."""

    def __init__(self, answers: Optional[Dict[Tuple[str, Tuple[str, ...]], List[str]]] = None, error: Optional[Exception] = None):
        self.answers = answers or {}
        self.error = error
        self.calls: List[Tuple[str, Tuple[str, ...], Optional[str]]] = []

    def lookup(self, hostname: str, qtypes: Sequence[str], server: Optional[str] = None) -> List[str]:
        self.calls.append((hostname, tuple(qtypes), server))
        if self.error:
            raise self.error
        return sorted(self.answers.get((hostname, tuple(qtypes)), []))


# ----------------------------
# Fixtures
# ----------------------------
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path) -> StateStore:
    return StateStore(tmp_path)


@pytest.fixture
def cf_ranges() -> FakeRangeSource:
    return FakeRangeSource(
        v4=["173.245.48.0/20", "104.16.0.0/13"],
        v6=["2400:cb00::/32", "2606:4700::/32"],
    )


@pytest.fixture
def example_records() -> List[DNSRecord]:
    return [
        DNSRecord(name="www.example.com", type="A", content="104.16.1.1", proxied=True, id="r1"),
        DNSRecord(name="www.example.com", type="AAAA", content="2606:4700::1", proxied=False, id="r2"),
        DNSRecord(name="mail.example.com", type="A", content="192.0.2.25", proxied=False, id="r3"),
        DNSRecord(name="example.com", type="MX", content="mail.example.com", proxied=False, id="r4"),
        DNSRecord(name="example.com", type="TXT", content="v=spf1 -all", proxied=False, id="r5"),
    ]


@pytest.fixture
def zone_source(example_records) -> FakeZoneSource:
    return FakeZoneSource(zones={"example.com": "zone-1"}, records={"zone-1": example_records})


@pytest.fixture
def make_resolver():
    return FakeResolver

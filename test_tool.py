from __future__ import annotations

import pytest

from cfapi.models import DNSRecord
from check_dns_cloudflare.errors import ResolutionError, UpstreamError
from conftest import FakeRangeSource, FakeResolver, FakeZoneSource
from reconcile.models import CRITICAL, OK
from reconcile.tool import CloudflareDNSCheck
from statecache.ranges import RangeCache
from statecache.zones import ZoneRecordCache


@pytest.fixture
def make_check(store, cf_ranges, zone_source, clock):
    def _make(resolver, ranges_source=None, zones_source=None, zone_finder=lambda host: "example.com"):
        return CloudflareDNSCheck(
            resolver=resolver,
            ranges=RangeCache(store, ranges_source or cf_ranges, clock=clock),
            zones=ZoneRecordCache(store, zones_source or zone_source, clock=clock),
            zone_finder=zone_finder,
        )
    return _make


def _issues(result):
    return [f.issue for f in result.findings]


def test_proxied_hostname_inside_cloudflare_ranges(make_check, cf_ranges):
    resolver = FakeResolver({("www.example.com", ("A", "AAAA")): ["104.16.1.1", "2606:4700::6810:101"]})
    result = make_check(resolver).check_host("www.example.com")

    assert result.proxied is True
    assert result.overall == OK
    assert result.zone == "example.com"
    assert _issues(result) == ["API_RECORDS_OK", "DNS_RESULTS_OK"]
    assert resolver.calls == [("www.example.com", ("A", "AAAA"), None)]
    assert cf_ranges.calls == 1
    assert result.observations["range_cache"] == "miss"


def test_proxied_hostname_resolving_outside_cloudflare(make_check):
    resolver = FakeResolver({("www.example.com", ("A", "AAAA")): ["192.0.2.80"]})
    result = make_check(resolver).check_host("www.example.com")

    assert result.overall == CRITICAL
    assert "OUTSIDE_TRUSTED_RANGE" in _issues(result)
    assert result.exit_code == 2


def test_not_proxied_hostname_is_compared_directly(make_check, cf_ranges):
    resolver = FakeResolver({("mail.example.com", ("A",)): ["192.0.2.25"]})
    result = make_check(resolver).check_host("mail.example.com", expected=["192.0.2.25"])

    assert result.proxied is False
    assert result.overall == OK
    assert resolver.calls == [("mail.example.com", ("A",), None)]
    # ranges are only needed for proxied hostnames
    assert cf_ranges.calls == 0


def test_not_proxied_mismatch_is_critical(make_check):
    resolver = FakeResolver({("mail.example.com", ("A",)): ["198.51.100.7"]})
    result = make_check(resolver).check_host("mail.example.com", expected=["192.0.2.25"])

    assert result.overall == CRITICAL
    assert _issues(result) == ["API_RECORDS_OK", "DNS_MISMATCH"]


def test_query_type_and_dns_server_are_passed_through(make_check):
    resolver = FakeResolver({("www.example.com", ("AAAA",)): ["2606:4700::1"]})
    result = make_check(resolver).check_host("www.example.com", query_type="aaaa", dns_server="1.1.1.1")

    # only the AAAA record survives the filter and it is not proxied
    assert result.proxied is False
    assert resolver.calls == [("www.example.com", ("AAAA",), "1.1.1.1")]
    assert result.overall == OK


def test_missing_expected_api_content_is_critical(make_check):
    resolver = FakeResolver({("mail.example.com", ("A",)): ["192.0.2.25", "192.0.2.26"]})
    result = make_check(resolver).check_host("mail.example.com", expected=["192.0.2.25,192.0.2.26"])

    assert result.overall == CRITICAL
    assert "MISSING_CONTENT" in _issues(result)
    # the DNS side agrees with the expectations
    assert "DNS_RESULTS_OK" in _issues(result)


def test_zone_lookup_failure_stops_the_check(make_check):
    resolver = FakeResolver()
    check = make_check(resolver, zones_source=FakeZoneSource())
    result = check.check_host("www.example.com")

    assert _issues(result) == ["API_QUERY_FAILED"]
    assert result.overall == CRITICAL
    assert resolver.calls == []


def test_range_failure_propagates(make_check):
    resolver = FakeResolver({("www.example.com", ("A", "AAAA")): ["104.16.1.1"]})
    check = make_check(resolver, ranges_source=FakeRangeSource(error=UpstreamError("cloudflare down")))

    with pytest.raises(UpstreamError):
        check.check_host("www.example.com")


def test_resolution_error_propagates(make_check):
    check = make_check(FakeResolver(error=ResolutionError("Could not find 'dig' command on PATH")))
    with pytest.raises(ResolutionError):
        check.check_host("mail.example.com")


def test_zone_override_skips_discovery(make_check):
    source = FakeZoneSource(
        zones={"example.net": "zone-9"},
        records={"zone-9": [DNSRecord(name="www.example.com", type="CNAME", content="example.net")]},
    )

    def no_discovery(host):
        raise AssertionError("zone discovery should not run")

    resolver = FakeResolver({("www.example.com", ("CNAME",)): ["example.net"]})
    result = make_check(resolver, zones_source=source, zone_finder=no_discovery).check_host(
        "www.example.com", zone="example.net", query_type="CNAME"
    )

    assert source.zone_calls == ["example.net"]
    assert result.zone == "example.net"
    assert result.overall == OK


def test_only_api_does_not_resolve(make_check):
    resolver = FakeResolver()
    result = make_check(resolver).check_host("www.example.com", only_api=True)

    assert resolver.calls == []
    assert _issues(result) == ["API_RECORDS_OK"]
    assert result.overall == OK


def test_only_dns_needs_no_caches():
    resolver = FakeResolver({("www.example.com", ("A",)): ["104.16.1.1"]})
    result = CloudflareDNSCheck(resolver=resolver).check_host("www.example.com", expected=["104.16.1.1"], only_dns=True)

    assert result.zone is None
    assert result.proxied is False
    assert _issues(result) == ["DNS_RESULTS_OK"]


def test_second_run_is_served_from_cache(make_check, zone_source, cf_ranges):
    resolver = FakeResolver({("www.example.com", ("A", "AAAA")): ["104.16.1.1"]})
    check = make_check(resolver)

    check.check_host("www.example.com")
    second = check.check_host("www.example.com")

    assert len(zone_source.record_calls) == 1
    assert cf_ranges.calls == 1
    assert second.observations["zone_cache"] == "hit"
    assert second.observations["range_cache"] == "hit"

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import dns.exception
import dns.name
import dns.resolver
import pytest

from check_dns_cloudflare.errors import ResolutionError
from lookup import domain as domain_module
from lookup.dig import DigResolver, normalize_answers, split_output
from lookup.domain import zone_for_hostname
from lookup.resolver import DnspythonResolver, make_resolver
from lookup.runner import CommandResult


# ----------------------------
# Fake runner
# ----------------------------
class FakeDigRunner:
    """
    Fake CommandRunner for DigResolver.

    Returns one canned CommandResult and remembers the argument lists it saw.
    """
    def __init__(self, result: Optional[CommandResult] = None, dig_path: Optional[str] = "/usr/bin/dig"):
        self.result = result or CommandResult(cmd=[], stdout="")
        self.dig_path = dig_path
        self.calls: List[Tuple[List[str], str]] = []

    def which(self, program: str) -> Optional[str]:
        return self.dig_path if program == "dig" else None

    def dig(self, args: Sequence[str], timeout_seconds: Optional[int] = None, path: str = "dig") -> CommandResult:
        self.calls.append((list(args), path))
        return self.result


# ----------------------------
# Answer normalization
# ----------------------------
def test_normalize_strips_one_trailing_dot_and_sorts():
    lines = split_output("shops.myshopify.com.\r\n23.227.38.65\n\n")
    assert normalize_answers(lines) == ["23.227.38.65", "shops.myshopify.com"]


def test_normalize_only_strips_a_single_dot():
    assert normalize_answers(["odd.."]) == ["odd."]


# ----------------------------
# DigResolver
# ----------------------------
def test_dig_multi_query_arguments():
    runner = FakeDigRunner(CommandResult(cmd=[], stdout="104.16.1.1\n2606:4700::6810:101\n"))
    r = DigResolver(timeout=5, runner=runner)

    answers = r.lookup("www.example.com", ["A", "AAAA"], server="1.1.1.1")

    assert answers == ["104.16.1.1", "2606:4700::6810:101"]
    args, path = runner.calls[0]
    assert path == "/usr/bin/dig"
    assert args == [
        "+short",
        "+time=5",
        "@1.1.1.1",
        "www.example.com",
        "-t",
        "A",
        "www.example.com",
        "-t",
        "AAAA",
    ]


def test_dig_default_server_is_used_when_none_given():
    runner = FakeDigRunner()
    DigResolver(timeout=2, server="9.9.9.9", runner=runner).lookup("www.example.com", ["TXT"])
    assert "@9.9.9.9" in runner.calls[0][0]


def test_dig_without_server_does_not_pass_one():
    runner = FakeDigRunner()
    DigResolver(runner=runner).lookup("www.example.com", ["A"])
    assert not any(a.startswith("@") for a in runner.calls[0][0])


def test_dig_missing_from_path():
    with pytest.raises(ResolutionError, match="Could not find 'dig'"):
        DigResolver(runner=FakeDigRunner(dig_path=None)).lookup("www.example.com", ["A"])


def test_dig_timeout_is_a_resolution_error():
    runner = FakeDigRunner(CommandResult(cmd=["dig"], stdout="", stderr="[timeout after 40s] dig", returncode=-1, timed_out=True))
    with pytest.raises(ResolutionError, match="timeout"):
        DigResolver(runner=runner).lookup("www.example.com", ["A"])


def test_dig_failure_exit_code_is_a_resolution_error():
    runner = FakeDigRunner(CommandResult(cmd=["dig"], stdout="", stderr="dig: couldn't get address for 'nope': not found\n", returncode=10))
    with pytest.raises(ResolutionError, match="exit 10"):
        DigResolver(runner=runner).lookup("www.example.com", ["A"])


# ----------------------------
# DnspythonResolver
# ----------------------------
@dataclass
class _Rdata:
    text: str

    def to_text(self) -> str:
        return self.text


@dataclass
class _Answer:
    rrset: Optional[List[_Rdata]]


class FakeDnsResolver:
    def __init__(self, by_type):
        self.by_type = by_type
        self.queries: List[Tuple[str, str]] = []

    def resolve(self, qname, rdtype, raise_on_no_answer=True):
        self.queries.append((qname, rdtype))
        outcome = self.by_type.get(rdtype)
        if isinstance(outcome, Exception):
            raise outcome
        return _Answer(rrset=[_Rdata(t) for t in outcome] if outcome is not None else None)


def _dnspython_with(monkeypatch, fake: FakeDnsResolver) -> DnspythonResolver:
    r = DnspythonResolver(timeout=3)
    monkeypatch.setattr(r, "_resolver", lambda server: fake)
    return r


def test_dnspython_collects_every_query_type(monkeypatch):
    fake = FakeDnsResolver({"A": ["104.16.1.1"], "AAAA": ["2606:4700::1"]})
    r = _dnspython_with(monkeypatch, fake)

    assert r.lookup("www.example.com", ["AAAA", "A"]) == ["104.16.1.1", "2606:4700::1"]
    assert fake.queries == [("www.example.com.", "AAAA"), ("www.example.com.", "A")]


def test_dnspython_nxdomain_and_no_answer_are_empty(monkeypatch):
    fake = FakeDnsResolver({"A": dns.resolver.NXDOMAIN(), "AAAA": None, "TXT": dns.resolver.NoAnswer()})
    r = _dnspython_with(monkeypatch, fake)
    assert r.lookup("gone.example.com", ["A", "AAAA", "TXT"]) == []


def test_dnspython_strips_trailing_dot_like_dig(monkeypatch):
    fake = FakeDnsResolver({"CNAME": ["shops.myshopify.com."]})
    r = _dnspython_with(monkeypatch, fake)
    assert r.lookup("shop.example.com", ["CNAME"]) == ["shops.myshopify.com"]


def test_dnspython_timeout_is_a_resolution_error(monkeypatch):
    fake = FakeDnsResolver({"A": dns.exception.Timeout()})
    r = _dnspython_with(monkeypatch, fake)
    with pytest.raises(ResolutionError, match="timed out"):
        r.lookup("www.example.com", ["A"])


def test_dnspython_servfail_is_a_resolution_error(monkeypatch):
    fake = FakeDnsResolver({"A": dns.resolver.NoNameservers()})
    r = _dnspython_with(monkeypatch, fake)
    with pytest.raises(ResolutionError):
        r.lookup("www.example.com", ["A"])


# ----------------------------
# Zone discovery
# ----------------------------
def test_zone_for_hostname_uses_enclosing_zone(monkeypatch):
    seen = []

    def fake_zone_for_name(name, resolver=None):
        seen.append(name)
        return dns.name.from_text("example.co.uk.")

    monkeypatch.setattr(domain_module.dns.resolver, "zone_for_name", fake_zone_for_name)

    assert zone_for_hostname("www.example.co.uk.") == "example.co.uk"
    assert seen == [dns.name.from_text("www.example.co.uk.")]


def test_zone_for_hostname_falls_back_to_hostname(monkeypatch):
    def broken(name, resolver=None):
        raise dns.exception.Timeout()

    monkeypatch.setattr(domain_module.dns.resolver, "zone_for_name", broken)

    assert zone_for_hostname("www.example.com") == "www.example.com"


def test_make_resolver_is_bounded_by_timeout():
    r = make_resolver(2, "192.0.2.53")
    assert r.lifetime == 2.0
    assert r.timeout == 2.0
    assert [str(ns) for ns in r.nameservers] == ["192.0.2.53"]


def test_make_resolver_rejects_server_names():
    with pytest.raises(ValueError):
        make_resolver(2, "ns1.example.net")

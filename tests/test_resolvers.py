"""
Brief: Tests for resolution strategies and the DoH-then-UDP fallback chain.

Inputs:
  - None

Outputs:
  - None
"""

import ipaddress

import pytest

from wgendpoint import resolvers as resolvers_mod
from wgendpoint.config.config_schema import ResolverSettings
from wgendpoint.endpoint import Endpoint
from wgendpoint.errors import ResolutionError
from wgendpoint.resolvers import (
    DoHResolver,
    FallbackResolver,
    UDPResolver,
    build_resolver,
    get_default_resolver,
    set_default_resolver,
)
from wgendpoint.transports.doh import DoHError
from wgendpoint.transports.udp import UDPError

V4 = ipaddress.ip_address("192.0.2.10")
V6 = ipaddress.ip_address("2001:db8::10")


def test_doh_resolver_prefers_a_then_aaaa(monkeypatch):
    """
    Brief: DoHResolver asks for AAAA only when A yields nothing.

    Inputs:
      - monkeypatched doh_query returning None for A and V6 for AAAA

    Outputs:
      - None: Asserts query order and result
    """
    seen = []

    def fake_doh_query(hostname, record_type, **kw):
        seen.append((hostname, record_type, kw["url"], kw["timeout"]))
        return None if record_type == "A" else V6

    monkeypatch.setattr(resolvers_mod, "doh_query", fake_doh_query)
    r = DoHResolver(url="https://doh.test/resolve", timeout=1.5)
    assert r.resolve("vpn.example.com") == V6
    assert seen == [
        ("vpn.example.com", "A", "https://doh.test/resolve", 1.5),
        ("vpn.example.com", "AAAA", "https://doh.test/resolve", 1.5),
    ]


def test_doh_resolver_stops_at_first_a(monkeypatch):
    calls = []

    def fake_doh_query(hostname, record_type, **kw):
        calls.append(record_type)
        return V4

    monkeypatch.setattr(resolvers_mod, "doh_query", fake_doh_query)
    assert DoHResolver().resolve("vpn.example.com") == V4
    assert calls == ["A"]


def test_udp_resolver_returns_first_address(monkeypatch):
    seen = {}

    def fake_udp_resolve(domain, timeout, retries, port):
        seen.update(domain=domain, timeout=timeout, retries=retries, port=port)
        return [V4, V6]

    monkeypatch.setattr(resolvers_mod, "udp_resolve", fake_udp_resolve)
    r = UDPResolver(timeout=1, retries=2, port=5353)
    assert r.resolve("vpn.example.com") == V4
    assert seen == {"domain": "vpn.example.com", "timeout": 1.0, "retries": 2, "port": 5353}


def test_udp_resolver_empty_is_none(monkeypatch):
    monkeypatch.setattr(resolvers_mod, "udp_resolve", lambda *a: [])
    assert UDPResolver().resolve("vpn.example.com") is None


def test_fallback_uses_udp_when_doh_has_no_answer(make_resolver):
    """
    Brief: An empty DoH answer is not a failure when UDP still succeeds.

    Inputs:
      - DoH double returning None, UDP double returning V4

    Outputs:
      - None: Asserts the endpoint resolves through the UDP leg
    """
    doh = make_resolver(None)
    udp = make_resolver(V4)
    chain = FallbackResolver([doh, udp])
    ep = Endpoint.parse("vpn.example.com:51820", resolver=chain)
    assert ep.get_resolved() == Endpoint("192.0.2.10", 51820)
    assert doh.calls == udp.calls == ["vpn.example.com"]


def test_fallback_uses_udp_when_doh_raises(make_resolver):
    chain = FallbackResolver([make_resolver(DoHError("blocked")), make_resolver(V4)])
    assert chain.resolve("vpn.example.com") == V4


def test_fallback_skips_later_when_first_succeeds(make_resolver):
    second = make_resolver(V6)
    chain = FallbackResolver([make_resolver(V4), second])
    assert chain.resolve("vpn.example.com") == V4
    assert second.calls == []


def test_fallback_reraises_last_error(make_resolver):
    chain = FallbackResolver(
        [make_resolver(DoHError("first")), make_resolver(UDPError("second"))]
    )
    with pytest.raises(UDPError, match="second"):
        chain.resolve("vpn.example.com")


def test_fallback_error_then_empty_reraises(make_resolver):
    chain = FallbackResolver([make_resolver(DoHError("blocked")), make_resolver(None)])
    with pytest.raises(ResolutionError):
        chain.resolve("vpn.example.com")


def test_fallback_all_empty_is_none(make_resolver):
    chain = FallbackResolver([make_resolver(None), make_resolver(None)])
    assert chain.resolve("vpn.example.com") is None


def test_fallback_requires_resolvers():
    with pytest.raises(ValueError):
        FallbackResolver([])


@pytest.mark.parametrize(
    "strategy,expected",
    [
        ("doh", [DoHResolver]),
        ("udp", [UDPResolver]),
        ("doh+udp", [DoHResolver, UDPResolver]),
        ("udp+doh", [UDPResolver, DoHResolver]),
    ],
)
def test_build_resolver_strategies(strategy, expected):
    r = build_resolver(ResolverSettings(strategy=strategy))
    chain = r.resolvers if isinstance(r, FallbackResolver) else [r]
    assert [type(x) for x in chain] == expected


def test_build_resolver_passes_settings():
    settings = ResolverSettings(
        strategy="doh+udp",
        doh={"url": "https://doh.test/resolve", "timeout": 3, "verify": False},
        udp={"port": 5353, "timeout": 1, "retries": 5},
    )
    doh, udp = build_resolver(settings).resolvers
    assert (doh.url, doh.timeout, doh.verify) == ("https://doh.test/resolve", 3.0, False)
    assert (udp.port, udp.timeout, udp.retries) == (5353, 1.0, 5)


def test_default_resolver_is_doh_then_udp():
    r = get_default_resolver()
    assert repr(r) == "<FallbackResolver doh+udp>"
    assert get_default_resolver() is r


def test_set_default_resolver(make_resolver):
    stub = make_resolver(V4)
    set_default_resolver(stub)
    assert get_default_resolver() is stub
    set_default_resolver(None)
    assert get_default_resolver() is not stub

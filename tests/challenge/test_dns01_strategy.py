"""Unit tests for certfetch.challenge.dns01."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import dns.exception
import dns.resolver
import pytest

from certfetch.ca.base import ChallengeTimeout
from certfetch.challenge.dns01 import Dns01Strategy, TxtLookup, challenge_host
from certfetch.config.settings import Dns01Settings
from certfetch.core.retry import RetryPolicy
from certfetch.store.memory import InMemoryCertStore



def _txt(*values):
    return [SimpleNamespace(strings=(v.encode(),)) for v in values]


@pytest.fixture()
def store():
    return InMemoryCertStore()


def _strategy(store, *, self_check=False, lookup=None, publisher=None, attempts=3):
    return Dns01Strategy(
        store,
        Dns01Settings(self_check=self_check, resolvers=(), timeout_seconds=5),
        publisher=publisher,
        lookup=lookup or (lambda _host: []),
        policy=RetryPolicy(attempts=attempts, interval_seconds=0),
        sleep=lambda _s: None,
    )


class TestChallengeHost:
    @pytest.mark.parametrize(
        ("identifier", "expected"),
        [
            ("example.com", "_acme-challenge.example.com."),
            ("*.example.com", "_acme-challenge.example.com."),
            ("example.com.", "_acme-challenge.example.com."),
        ],
    )
    def test_host(self, identifier, expected):
        assert challenge_host(identifier) == expected


class TestDns01Strategy:
    def test_wildcard_and_apex_share_host(self, store, session, authz_factory):
        strategy = _strategy(store)
        apex = authz_factory("example.com")
        wild = authz_factory("example.com", wildcard=True)

        m1 = strategy.prepare(session, apex, apex.challenges[1])
        m2 = strategy.prepare(session, wild, wild.challenges[1])

        assert m1.name == m2.name == "_acme-challenge.example.com."
        assert m2.identifier == "*.example.com"

    def test_setup_stores_and_publishes(self, store, session, authz_factory):
        publisher = MagicMock()
        strategy = _strategy(store, publisher=publisher)
        authz = authz_factory()
        material = strategy.prepare(session, authz, authz.challenges[1])

        strategy.setup(material)

        assert store.get_dns_challenges(material.name) == [material.value]
        publisher.publish.assert_called_once_with(material.name, material.value)

    def test_teardown_removes_and_unpublishes(self, store, session, authz_factory):
        publisher = MagicMock()
        strategy = _strategy(store, publisher=publisher)
        authz = authz_factory()
        material = strategy.prepare(session, authz, authz.challenges[1])
        strategy.setup(material)

        strategy.teardown(material)

        assert store.get_dns_challenges(material.name) == []
        publisher.unpublish.assert_called_once_with(material.name, material.value)

    def test_teardown_unpublishes_even_if_store_fails(self, session, authz_factory):
        store = MagicMock()
        store.delete_dns_challenge.side_effect = RuntimeError("db down")
        publisher = MagicMock()
        strategy = _strategy(store, publisher=publisher)
        authz = authz_factory()
        material = strategy.prepare(session, authz, authz.challenges[1])

        with pytest.raises(RuntimeError):
            strategy.teardown(material)
        publisher.unpublish.assert_called_once()

    def test_self_check_waits_for_value(self, store, session, authz_factory):
        authz = authz_factory()
        seen = iter([[], ["other"], ["value-for-tok-dns-01"]])
        lookup = MagicMock(side_effect=lambda _h: next(seen))
        strategy = _strategy(store, self_check=True, lookup=lookup)

        strategy.setup(strategy.prepare(session, authz, authz.challenges[1]))

        assert lookup.call_count == 3
        lookup.assert_called_with("_acme-challenge.example.com.")

    def test_self_check_times_out(self, store, session, authz_factory):
        authz = authz_factory()
        strategy = _strategy(store, self_check=True, attempts=2)

        with pytest.raises(ChallengeTimeout, match="propagation"):
            strategy.setup(strategy.prepare(session, authz, authz.challenges[1]))

    def test_self_check_disabled_skips_lookup(self, store, session, authz_factory):
        lookup = MagicMock()
        strategy = _strategy(store, lookup=lookup)
        authz = authz_factory()

        strategy.setup(strategy.prepare(session, authz, authz.challenges[1]))

        lookup.assert_not_called()


class TestTxtLookup:
    @patch("certfetch.challenge.dns01.dns.resolver.Resolver")
    @patch("certfetch.challenge.dns01.dns.resolver.resolve")
    @patch("certfetch.challenge.dns01.dns.resolver.zone_for_name")
    def test_queries_authoritative_nameservers(self, mock_zone, mock_resolve, mock_resolver_cls):
        mock_zone.return_value = "example.com."
        ns = SimpleNamespace(target=SimpleNamespace(to_text=lambda: "ns1.example.net."))

        def fake_resolve(name, rdtype):
            if rdtype == "NS":
                return [ns]
            if rdtype == "A":
                return [SimpleNamespace(address="192.0.2.53")]
            raise dns.resolver.NoAnswer

        mock_resolve.side_effect = fake_resolve
        resolver = mock_resolver_cls.return_value
        resolver.resolve.return_value = _txt("abc")

        assert TxtLookup()("_acme-challenge.example.com.") == ["abc"]
        mock_resolver_cls.assert_called_once_with(configure=False)
        assert resolver.nameservers == ["192.0.2.53"]

    @patch("certfetch.challenge.dns01.dns.resolver.Resolver")
    @patch("certfetch.challenge.dns01.dns.resolver.zone_for_name")
    def test_falls_back_to_configured_resolvers(self, mock_zone, mock_resolver_cls):
        mock_zone.side_effect = dns.exception.Timeout
        resolver = mock_resolver_cls.return_value
        resolver.resolve.return_value = _txt("a", "b")

        result = TxtLookup(resolvers=("9.9.9.9",), timeout=5)("_acme-challenge.example.com.")

        assert result == ["a", "b"]
        assert resolver.nameservers == ["9.9.9.9"]
        assert resolver.lifetime == 5

    @pytest.mark.parametrize(
        "error",
        [
            dns.resolver.NXDOMAIN,
            dns.resolver.NoAnswer,
            dns.resolver.NoNameservers,
            dns.exception.Timeout,
        ],
    )
    @patch("certfetch.challenge.dns01.dns.resolver.Resolver")
    @patch("certfetch.challenge.dns01.dns.resolver.zone_for_name")
    def test_lookup_errors_mean_no_values(self, mock_zone, mock_resolver_cls, error):
        mock_zone.side_effect = dns.exception.DNSException
        mock_resolver_cls.return_value.resolve.side_effect = error

        assert TxtLookup()("_acme-challenge.example.com.") == []

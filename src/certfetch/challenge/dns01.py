"""DNS-01 challenge strategy (RFC 8555 §8.4).

The digest is stored for ``_acme-challenge.<domain>.`` (wildcard
authorizations share the apex host), optionally pushed to the
authoritative DNS through a :class:`~certfetch.store.dns_publisher.DnsPublisher`,
then self-checked against the zone's authoritative nameservers before
the CA is asked to validate.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import dns.exception
import dns.resolver

from certfetch.challenge.base import ChallengeMaterial, ChallengeStrategy
from certfetch.core.retry import poll_until
from certfetch.core.types import ChallengeType

if TYPE_CHECKING:
    from collections.abc import Callable

    from certfetch.ca.session import AcmeSession, AuthorizationHandle, ChallengeHandle
    from certfetch.config.settings import Dns01Settings
    from certfetch.core.retry import RetryPolicy
    from certfetch.store.base import CertStore
    from certfetch.store.dns_publisher import DnsPublisher

log = logging.getLogger(__name__)


def challenge_host(identifier: str) -> str:
    """Return the fully qualified TXT host for *identifier*."""
    return f"_acme-challenge.{identifier.removeprefix('*.').rstrip('.')}."


class TxtLookup:
    """Query TXT values, preferring the zone's authoritative servers.

    Parameters
    ----------
    resolvers:
        Fallback nameserver addresses.  The system resolver is used
        when empty.
    timeout:
        Lifetime of each query in seconds.

    """

    def __init__(self, resolvers: tuple[str, ...] = (), timeout: float = 10) -> None:
        self._resolvers = resolvers
        self._timeout = timeout

    def __call__(self, host: str) -> list[str]:
        """Return the TXT values at *host*; empty when absent or unreachable."""
        resolver = self._authoritative_resolver(host) or self._fallback_resolver()
        try:
            answer = resolver.resolve(host, "TXT")
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            return []
        except dns.resolver.NoNameservers:
            log.debug("DNS-01 self-check: no nameserver answered for %s", host)
            return []
        except dns.exception.Timeout:
            log.debug("DNS-01 self-check: TXT query for %s timed out", host)
            return []
        except dns.exception.DNSException as exc:
            log.debug("DNS-01 self-check: error querying %s: %s", host, exc)
            return []
        # TXT rdata has .strings, a tuple of bytes segments
        return [b"".join(rdata.strings).decode("ascii", errors="replace") for rdata in answer]

    def _fallback_resolver(self) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver()
        if self._resolvers:
            resolver.nameservers = list(self._resolvers)
        resolver.lifetime = self._timeout
        return resolver

    def _authoritative_resolver(self, host: str) -> dns.resolver.Resolver | None:
        try:
            zone = dns.resolver.zone_for_name(host)
            ns_answer = dns.resolver.resolve(zone, "NS")
        except dns.exception.DNSException as exc:
            log.debug("DNS-01 authoritative NS lookup failed for %s: %s", host, exc)
            return None

        ns_ips: list[str] = []
        for rdata in ns_answer:
            ns_name = rdata.target.to_text()
            for rdtype in ("A", "AAAA"):
                try:
                    ns_ips.extend(r.address for r in dns.resolver.resolve(ns_name, rdtype))
                except dns.exception.DNSException:
                    continue
        if not ns_ips:
            log.debug("DNS-01 authoritative NS for %s have no addresses", host)
            return None

        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = ns_ips
        resolver.lifetime = self._timeout
        log.debug("DNS-01 using authoritative NS for %s: %s", host, ns_ips)
        return resolver


class Dns01Strategy(ChallengeStrategy):
    """DNS-01 strategy.

    Parameters
    ----------
    store:
        Where the (host, digest) pair is persisted for ``/connect``.
    settings:
        ``challenges.dns01`` section.
    publisher:
        Pushes the TXT value to the authoritative DNS, if configured.
    lookup:
        TXT query callable; built from *settings* when omitted.

    """

    challenge_type = ChallengeType.DNS_01

    def __init__(  # noqa: PLR0913
        self,
        store: CertStore,
        settings: Dns01Settings,
        *,
        publisher: DnsPublisher | None = None,
        lookup: Callable[[str], list[str]] | None = None,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(store, policy=policy, sleep=sleep)
        self._settings = settings
        self._publisher = publisher
        self._lookup = lookup or TxtLookup(settings.resolvers, settings.timeout_seconds)

    def prepare(
        self,
        session: AcmeSession,
        authz: AuthorizationHandle,
        challenge: ChallengeHandle,
    ) -> ChallengeMaterial:
        return ChallengeMaterial(
            identifier=authz.display_name,
            name=challenge_host(authz.identifier),
            value=session.validation(challenge),
        )

    def setup(self, material: ChallengeMaterial) -> None:
        self._store.set_dns_challenge(material.name, material.value)
        if self._publisher is not None:
            self._publisher.publish(material.name, material.value)
        if self._settings.self_check:
            self._await_propagation(material)

    def teardown(self, material: ChallengeMaterial) -> None:
        try:
            self._store.delete_dns_challenge(material.name, material.value)
        finally:
            if self._publisher is not None:
                self._publisher.unpublish(material.name, material.value)

    def _await_propagation(self, material: ChallengeMaterial) -> None:
        poll_until(
            lambda: self._lookup(material.name),
            done=lambda values: material.value in values,
            policy=self._policy,
            what=f"DNS-01 propagation of {material.name}",
            sleep=self._sleep,
        )
        log.info("DNS-01 record visible at %s for %s", material.name, material.identifier)

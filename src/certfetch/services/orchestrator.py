"""Full ACME issuance for one admitted domain.

Usage::

    orchestrator = CertificateOrchestrator(
        store,
        session_factory=lambda pem: AcmeSession.open(directory_url=url, account_key_pem=pem),
        completer=completer,
        settings=settings.acme,
    )
    record = orchestrator.issue(request)
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from certfetch.ca.base import AcmeProtocolFailure
from certfetch.ca.keys import (
    build_csr,
    cert_to_pem,
    dns_names,
    generate_private_key,
    load_chain,
    private_key_to_pem,
    public_key_to_pem,
)
from certfetch.core.retry import RetryPolicy, poll_until
from certfetch.core.types import AcmeStatus, KeypairType, KeyType
from certfetch.logging.sanitize import sanitize_pem
from certfetch.models import CertRecord, KeypairRecord

if TYPE_CHECKING:
    from collections.abc import Callable

    from certfetch.ca.session import AcmeSession, OrderHandle
    from certfetch.challenge.completer import ChallengeCompleter
    from certfetch.config.settings import AcmeSettings
    from certfetch.models import RequestDomain
    from certfetch.store.base import CertStore

log = logging.getLogger(__name__)

# Account keys are always RSA: every ACME CA accepts RS256
ACCOUNT_KEY_TYPE = KeyType.RSA2048


class CertificateOrchestrator:
    """Account, order, challenges, finalization and download, in that order.

    Parameters
    ----------
    store:
        Keypair and certificate persistence.
    session_factory:
        Opens an :class:`AcmeSession` signing with the given account
        private key PEM.
    completer:
        Drives each pending authorization to VALID.
    settings:
        ``acme`` section: contact email and CERT key type.
    policy:
        Attempt budget for order polling.
    sleep:
        Injected for tests.

    """

    def __init__(  # noqa: PLR0913
        self,
        store: CertStore,
        *,
        session_factory: Callable[[str], AcmeSession],
        completer: ChallengeCompleter,
        settings: AcmeSettings,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._session_factory = session_factory
        self._completer = completer
        self._settings = settings
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    def issue(self, request: RequestDomain) -> CertRecord:
        """Obtain, persist and return a certificate for *request*.

        Raises
        ------
        AcmeProtocolFailure
            On any unrecoverable step; nothing is persisted except
            keypairs created along the way.

        """
        log.info(
            "Issuing %s certificate for %s (SAN %s)",
            "platform wildcard" if request.wildcard else "customer",
            request.domain,
            ", ".join(request.san),
        )

        account = self._load_or_create_keypair(
            KeypairType.ACCOUNT,
            request.account_keypair_id,
            ACCOUNT_KEY_TYPE,
        )
        session = self._session_factory(account.private_key_pem)
        session.register(email=self._settings.email)

        cert_keypair = self._load_or_create_keypair(
            KeypairType.CERT,
            request.cert_keypair_id,
            KeyType(self._settings.cert_key_type),
        )
        csr_pem = build_csr(cert_keypair.private_key_pem, request.san)
        order = session.new_order(csr_pem)

        for authz in order.authorizations:
            if authz.status is not AcmeStatus.VALID:
                self._completer.complete(session, authz)

        order = session.refresh_order(order)
        if order.status is not AcmeStatus.VALID:
            order = session.finalize(order)
        order = self._await_valid(session, order, request.domain)

        chain_pem = session.fetch_certificate(order)
        record = self._to_record(request.domain, chain_pem)
        self._store.set_cert(record)
        log.info(
            "Issued certificate for %s, valid %s to %s",
            request.domain,
            record.issued_at.isoformat(),
            record.expires_at.isoformat(),
        )
        return record

    # -- internals ----------------------------------------------------------

    def _load_or_create_keypair(
        self,
        keypair_type: KeypairType,
        keypair_id: str,
        key_type: KeyType,
    ) -> KeypairRecord:
        existing = self._store.get_keypair(keypair_type, keypair_id)
        if existing is not None:
            return existing
        key = generate_private_key(key_type)
        keypair = KeypairRecord(
            id=keypair_id,
            type=keypair_type,
            public_key_pem=public_key_to_pem(key),
            private_key_pem=private_key_to_pem(key),
        )
        self._store.set_keypair(keypair)
        log.info("Created %s %s keypair for %s", key_type, keypair_type, keypair_id)
        return keypair

    def _await_valid(self, session: AcmeSession, order: OrderHandle, domain: str) -> OrderHandle:
        if order.status is AcmeStatus.VALID:
            return order
        return poll_until(
            lambda: session.refresh_order(order),
            done=lambda o: o.status is AcmeStatus.VALID,
            failed=lambda o: o.status is AcmeStatus.INVALID,
            policy=self._policy,
            what=f"order {order.uri} for {domain}",
            sleep=self._sleep,
        )

    @staticmethod
    def _to_record(domain: str, chain_pem: str) -> CertRecord:
        try:
            chain = load_chain(chain_pem)
            leaf = chain[0]
            expires_at = leaf.not_valid_after_utc
            return CertRecord(
                domain=domain,
                cert_pem=cert_to_pem(leaf),
                chain_pem="".join(cert_to_pem(c) for c in chain),
                alt_names=dns_names(leaf),
                issued_at=leaf.not_valid_before_utc,
                expires_at=expires_at,
                ttl=int(expires_at.timestamp()),
            )
        except ValueError as exc:
            log.debug("Unusable chain for %s: %s", domain, sanitize_pem(chain_pem))
            msg = f"CA returned an unusable certificate for {domain}: {exc}"
            raise AcmeProtocolFailure(msg) from exc

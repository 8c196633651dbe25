"""TLS-facing entry point: a certificate and key for a server name.

:meth:`CertFetcher.get_or_create_cert_and_keypair` is called on the TLS
handshake path.  It never raises: any failure is logged (throttled per
domain) and reported as "no certificate", and a stored certificate is
served while its renewal runs in the background.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from certfetch.ca.base import AcmeProtocolFailure
from certfetch.core.types import ConsistencyVerdict, KeypairType
from certfetch.logging.ratelimit import RateLimitedLog
from certfetch.models import CertAndKeypair
from certfetch.services.static_cert import parse_static_cert

if TYPE_CHECKING:
    from certfetch.config.settings import FetcherSettings
    from certfetch.models import RequestDomain
    from certfetch.services.admission import DomainAdmissionPolicy
    from certfetch.services.consistency import ConsistencyGuard
    from certfetch.services.orchestrator import CertificateOrchestrator
    from certfetch.services.renewal import RenewalScheduler
    from certfetch.store.base import CertStore

log = logging.getLogger(__name__)


class CertFetcher:
    """Glue between admission, storage, consistency, issuance and renewal.

    Parameters
    ----------
    settings:
        ``fetcher`` section.  A configured ``static_cert`` is parsed
        here, so an invalid one fails construction.
    admission:
        Decides which domains are served.
    store:
        Certificate and keypair persistence.
    orchestrator:
        Synchronous first issuance.
    guard:
        Keypair consistency check and repair.
    scheduler:
        Background renewal.
    failure_log:
        Throttle for issuance failure logging.

    """

    def __init__(  # noqa: PLR0913
        self,
        settings: FetcherSettings,
        *,
        admission: DomainAdmissionPolicy,
        store: CertStore,
        orchestrator: CertificateOrchestrator,
        guard: ConsistencyGuard,
        scheduler: RenewalScheduler,
        failure_log: RateLimitedLog | None = None,
    ) -> None:
        self._enabled = settings.enabled
        self._static = parse_static_cert(settings.static_cert) if settings.static_cert else None
        self._admission = admission
        self._store = store
        self._orchestrator = orchestrator
        self._guard = guard
        self._scheduler = scheduler
        self._failure_log = failure_log or RateLimitedLog()

    def get_or_create_cert_and_keypair(self, domain: str) -> CertAndKeypair | None:
        """Return a usable certificate and key for *domain*, or None."""
        if not self._enabled:
            return None
        if self._static is not None:
            return self._static
        try:
            return self._fetch(domain)
        except Exception:  # noqa: BLE001
            if self._failure_log.allow(domain):
                log.exception("Unexpected failure fetching certificate for %s", domain)
            return None

    # -- internals ----------------------------------------------------------

    def _fetch(self, domain: str) -> CertAndKeypair | None:
        request = self._admission.resolve(domain)
        if request is None:
            return None

        cert = self._store.get_cert(request.domain)
        if cert is None:
            return self._create(request)

        keypair = self._store.get_keypair(KeypairType.CERT, request.cert_keypair_id)
        if keypair is None:
            log.warning("Certificate for %s has no keypair; re-issuing", request.domain)
            self._store.delete_cert(request.domain)
            return self._create(request)

        if self._guard.verify(cert, keypair) is ConsistencyVerdict.MISMATCHED:
            self._guard.repair(request)
            return self._create(request)

        # Renew only a verified pair; the paths above already reissue
        self._scheduler.maybe_schedule(request, cert)
        return CertAndKeypair(cert=cert, keypair=keypair)

    def _create(self, request: RequestDomain) -> CertAndKeypair | None:
        try:
            cert = self._orchestrator.issue(request)
        except AcmeProtocolFailure as exc:
            if self._failure_log.allow(request.domain):
                log.warning(
                    "Certificate issuance failed for %s (retryable=%s, %d repeats suppressed): %s",
                    request.domain,
                    exc.retryable,
                    self._failure_log.suppressed(request.domain),
                    exc.detail,
                )
            return None

        keypair = self._store.get_keypair(KeypairType.CERT, request.cert_keypair_id)
        if keypair is None:
            msg = f"CERT keypair for {request.domain} missing right after issuance"
            raise RuntimeError(msg)
        return CertAndKeypair(cert=cert, keypair=keypair)

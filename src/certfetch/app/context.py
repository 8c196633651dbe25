"""Dependency injection container for certfetch.

Created once during application startup and stored on the Flask app
via ``app.extensions["container"]``.  Accessible from any request
context with :func:`get_container`.

Usage::

    from certfetch.app.context import get_container

    c = get_container()
    pair = c.fetcher.get_or_create_cert_and_keypair(host)
"""

from __future__ import annotations

import functools
import logging
import time
from typing import TYPE_CHECKING

from flask import current_app

from certfetch.ca.session import AcmeSession
from certfetch.challenge import ChallengeCompleter, Dns01Strategy, Http01Strategy
from certfetch.core.retry import RetryPolicy
from certfetch.core.types import ChallengeType
from certfetch.logging.ratelimit import RateLimitedLog
from certfetch.services import (
    CertFetcher,
    CertificateOrchestrator,
    ConsistencyGuard,
    DomainAdmissionPolicy,
    RenewalScheduler,
)
from certfetch.services.consistency import parse_cutover
from certfetch.store import InMemoryCertStore, InMemoryProjectStore
from certfetch.store.dns_publisher import CallbackDnsPublisher

if TYPE_CHECKING:
    from collections.abc import Callable

    from pypgkit import Database

    from certfetch.challenge.base import ChallengeStrategy
    from certfetch.config.settings import AcmeSettings, CertfetchSettings
    from certfetch.store.base import CertStore, ProjectStore
    from certfetch.store.dns_publisher import DnsPublisher

log = logging.getLogger(__name__)


def default_session_factory(settings: AcmeSettings) -> Callable[[str], AcmeSession]:
    """Return a factory opening sessions against the configured directory."""

    def _open(account_key_pem: str) -> AcmeSession:
        return AcmeSession.open(
            directory_url=settings.directory_url,
            account_key_pem=account_key_pem,
            user_agent=settings.user_agent,
            verify_ssl=settings.verify_ssl,
            timeout=settings.timeout_seconds,
        )

    return _open


class Container:
    """Application-wide dependency container.

    Parameters
    ----------
    settings:
        The full typed settings tree.
    database:
        Initialised :class:`Database`, required when
        ``store.backend`` is ``postgres``.
    session_factory:
        Overrides how ACME sessions are opened.
    sleep:
        Polling sleep, injected for tests.

    """

    def __init__(
        self,
        settings: CertfetchSettings,
        database: Database | None = None,
        *,
        session_factory: Callable[[str], AcmeSession] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.db = database

        self.store, self.projects = self._build_stores(settings, database)
        self.publisher: DnsPublisher | None = (
            CallbackDnsPublisher(settings.challenges.dns_publisher)
            if settings.challenges.dns_publisher.configured
            else None
        )

        policy = RetryPolicy.from_settings(settings.polling)
        self.completer = ChallengeCompleter(self._build_strategies(policy, sleep))

        self.orchestrator = CertificateOrchestrator(
            self.store,
            session_factory=session_factory or default_session_factory(settings.acme),
            completer=self.completer,
            settings=settings.acme,
            policy=policy,
            sleep=sleep,
        )
        self.admission = DomainAdmissionPolicy(settings.fetcher, self.projects)
        self.guard = ConsistencyGuard(self.store, parse_cutover(settings.consistency.cutover))
        self.scheduler = RenewalScheduler(
            self.orchestrator,
            settings.renewal,
            failure_log=RateLimitedLog(),
        )
        self.fetcher = CertFetcher(
            settings.fetcher,
            admission=self.admission,
            store=self.store,
            orchestrator=self.orchestrator,
            guard=self.guard,
            scheduler=self.scheduler,
            failure_log=RateLimitedLog(),
        )
        log.info(
            "Container ready: store=%s, challenges=%s, publisher=%s",
            settings.store.backend,
            ",".join(self.completer.enabled_types),
            "callback" if self.publisher else "none",
        )

    def shutdown(self) -> None:
        self.scheduler.shutdown(self.settings.renewal.shutdown_timeout_seconds)

    # -- wiring -------------------------------------------------------------

    @staticmethod
    def _build_stores(
        settings: CertfetchSettings,
        database: Database | None,
    ) -> tuple[CertStore, ProjectStore]:
        if settings.store.backend == "postgres":
            if database is None:
                msg = "store.backend is 'postgres' but no database was initialised"
                raise RuntimeError(msg)
            from certfetch.store.postgres import (  # noqa: PLC0415
                PostgresCertStore,
                PostgresProjectStore,
            )

            return PostgresCertStore(database), PostgresProjectStore(database)
        return InMemoryCertStore(), InMemoryProjectStore(settings.store.project_slugs)

    def _build_strategies(
        self,
        policy: RetryPolicy,
        sleep: Callable[[float], None],
    ) -> dict[ChallengeType, ChallengeStrategy]:
        builders: dict[ChallengeType, Callable[[], ChallengeStrategy]] = {
            ChallengeType.HTTP_01: functools.partial(
                Http01Strategy,
                self.store,
                policy=policy,
                sleep=sleep,
            ),
            ChallengeType.DNS_01: functools.partial(
                Dns01Strategy,
                self.store,
                self.settings.challenges.dns01,
                publisher=self.publisher,
                policy=policy,
                sleep=sleep,
            ),
        }
        return {
            ChallengeType(name): builders[ChallengeType(name)]()
            for name in self.settings.challenges.enabled
        }


def get_container() -> Container:
    """Return the :class:`Container` from the current Flask app."""
    container = current_app.extensions.get("container")
    if container is None:
        msg = "Dependency container not available -- was create_app() called?"
        raise RuntimeError(msg)
    return container

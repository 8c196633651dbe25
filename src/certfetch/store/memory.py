"""In-memory stores.

Thread-safe, process-local.  Suitable for a single instance and for
tests; use :mod:`certfetch.store.postgres` when several instances must
share issued certificates.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from certfetch.models import Project
from certfetch.store.base import CertStore, ProjectStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from certfetch.core.types import KeypairType
    from certfetch.models import CertRecord, KeypairRecord


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryCertStore(CertStore):
    """Dict-backed :class:`CertStore` guarded by a single lock."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._certs: dict[str, CertRecord] = {}
        self._keypairs: dict[tuple[KeypairType, str], KeypairRecord] = {}
        self._http: dict[str, str] = {}
        self._dns: dict[str, list[str]] = {}

    # -- certificates -------------------------------------------------------

    def get_cert(self, domain: str) -> CertRecord | None:
        with self._lock:
            cert = self._certs.get(domain)
        if cert is None or cert.expires_at <= self._clock():
            return None
        return cert

    def set_cert(self, cert: CertRecord) -> None:
        with self._lock:
            self._certs[cert.domain] = cert

    def delete_cert(self, domain: str) -> None:
        with self._lock:
            self._certs.pop(domain, None)

    # -- keypairs -----------------------------------------------------------

    def get_keypair(self, keypair_type: KeypairType, keypair_id: str) -> KeypairRecord | None:
        with self._lock:
            return self._keypairs.get((keypair_type, keypair_id))

    def set_keypair(self, keypair: KeypairRecord) -> None:
        with self._lock:
            self._keypairs[(keypair.type, keypair.id)] = keypair

    def delete_keypair(self, keypair_type: KeypairType, keypair_id: str) -> None:
        with self._lock:
            self._keypairs.pop((keypair_type, keypair_id), None)

    # -- HTTP-01 ------------------------------------------------------------

    def set_http_challenge(self, token: str, key_authorization: str) -> None:
        with self._lock:
            self._http[token] = key_authorization

    def get_http_challenge(self, token: str) -> str | None:
        with self._lock:
            return self._http.get(token)

    def delete_http_challenge(self, token: str) -> None:
        with self._lock:
            self._http.pop(token, None)

    # -- DNS-01 -------------------------------------------------------------

    def set_dns_challenge(self, host: str, digest: str) -> None:
        with self._lock:
            digests = self._dns.setdefault(host, [])
            if digest not in digests:
                digests.append(digest)

    def get_dns_challenges(self, host: str) -> list[str]:
        with self._lock:
            return list(self._dns.get(host, ()))

    def delete_dns_challenge(self, host: str, digest: str) -> None:
        with self._lock:
            digests = self._dns.get(host)
            if digests is None:
                return
            if digest in digests:
                digests.remove(digest)
            if not digests:
                del self._dns[host]


class InMemoryProjectStore(ProjectStore):
    """Fixed set of project slugs, typically seeded from configuration."""

    def __init__(self, slugs: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._projects = {s.lower(): Project(slug=s.lower()) for s in slugs}

    def add(self, slug: str) -> Project:
        project = Project(slug=slug.lower(), created_at=_utcnow())
        with self._lock:
            self._projects[project.slug] = project
        return project

    def get_project_by_slug(self, slug: str) -> Project | None:
        with self._lock:
            return self._projects.get(slug.lower())

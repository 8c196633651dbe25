"""PostgreSQL-backed stores built on the PyPGKit repositories.

Shares issued certificates, keypairs and challenge material across every
instance pointed at the same database, so a token set up by one process
can be served by the HTTP responder of another.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from certfetch.models import DnsChallengeRecord, HttpChallengeRecord
from certfetch.repositories import (
    CertRepository,
    DnsChallengeRepository,
    HttpChallengeRepository,
    KeypairRepository,
    ProjectRepository,
)
from certfetch.store.base import CertStore, ProjectStore

if TYPE_CHECKING:
    from pypgkit import Database

    from certfetch.core.types import KeypairType
    from certfetch.models import CertRecord, KeypairRecord, Project


class PostgresCertStore(CertStore):
    """:class:`CertStore` over the ``certs``, ``keypairs`` and challenge tables."""

    def __init__(self, db: Database) -> None:
        self._certs = CertRepository(db)
        self._keypairs = KeypairRepository(db)
        self._http = HttpChallengeRepository(db)
        self._dns = DnsChallengeRepository(db)

    def get_cert(self, domain: str) -> CertRecord | None:
        return self._certs.find_active(domain)

    def set_cert(self, cert: CertRecord) -> None:
        self._certs.upsert(cert)

    def delete_cert(self, domain: str) -> None:
        self._certs.delete_by({"domain": domain})

    def get_keypair(self, keypair_type: KeypairType, keypair_id: str) -> KeypairRecord | None:
        return self._keypairs.find(keypair_type, keypair_id)

    def set_keypair(self, keypair: KeypairRecord) -> None:
        self._keypairs.upsert(keypair)

    def delete_keypair(self, keypair_type: KeypairType, keypair_id: str) -> None:
        self._keypairs.remove(keypair_type, keypair_id)

    def set_http_challenge(self, token: str, key_authorization: str) -> None:
        self._http.upsert(HttpChallengeRecord(token=token, key_authorization=key_authorization))

    def get_http_challenge(self, token: str) -> str | None:
        record = self._http.find_one_by({"token": token})
        return record.key_authorization if record else None

    def delete_http_challenge(self, token: str) -> None:
        self._http.delete_by({"token": token})

    def set_dns_challenge(self, host: str, digest: str) -> None:
        self._dns.add(DnsChallengeRecord(host_name=host, digest=digest))

    def get_dns_challenges(self, host: str) -> list[str]:
        return self._dns.find_digests(host)

    def delete_dns_challenge(self, host: str, digest: str) -> None:
        self._dns.delete_by({"host_name": host, "digest": digest})


class PostgresProjectStore(ProjectStore):
    def __init__(self, db: Database) -> None:
        self._projects = ProjectRepository(db)

    def get_project_by_slug(self, slug: str) -> Project | None:
        return self._projects.find_by_slug(slug)

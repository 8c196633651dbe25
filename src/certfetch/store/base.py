"""Abstract persistence interfaces.

:class:`CertStore` holds everything the fetcher persists: issued
certificates, ACCOUNT/CERT keypairs and the ephemeral challenge material
the HTTP responder and DNS publisher serve.  :class:`ProjectStore` is
the read-only lookup of verified customer domains.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from certfetch.core.types import KeypairType
    from certfetch.models import CertRecord, KeypairRecord, Project


class CertStore(abc.ABC):
    """Certificate, keypair and challenge persistence."""

    # -- certificates -------------------------------------------------------

    @abc.abstractmethod
    def get_cert(self, domain: str) -> CertRecord | None:
        """Return the active certificate for *domain*.

        Implementations never return a certificate whose ``expires_at``
        is already in the past.
        """

    @abc.abstractmethod
    def set_cert(self, cert: CertRecord) -> None:
        """Store *cert*, replacing any previous record for its domain."""

    @abc.abstractmethod
    def delete_cert(self, domain: str) -> None: ...

    # -- keypairs -----------------------------------------------------------

    @abc.abstractmethod
    def get_keypair(self, keypair_type: KeypairType, keypair_id: str) -> KeypairRecord | None: ...

    @abc.abstractmethod
    def set_keypair(self, keypair: KeypairRecord) -> None: ...

    @abc.abstractmethod
    def delete_keypair(self, keypair_type: KeypairType, keypair_id: str) -> None: ...

    # -- HTTP-01 ------------------------------------------------------------

    @abc.abstractmethod
    def set_http_challenge(self, token: str, key_authorization: str) -> None: ...

    @abc.abstractmethod
    def get_http_challenge(self, token: str) -> str | None: ...

    @abc.abstractmethod
    def delete_http_challenge(self, token: str) -> None: ...

    # -- DNS-01 -------------------------------------------------------------

    @abc.abstractmethod
    def set_dns_challenge(self, host: str, digest: str) -> None:
        """Add *digest* to the TXT values for *host*.

        A host may carry several digests at once: the apex and the
        wildcard authorizations share ``_acme-challenge.<apex>.``.
        """

    @abc.abstractmethod
    def get_dns_challenges(self, host: str) -> list[str]: ...

    @abc.abstractmethod
    def delete_dns_challenge(self, host: str, digest: str) -> None: ...


class ProjectStore(abc.ABC):
    """Lookup of customer projects bound to a custom domain."""

    @abc.abstractmethod
    def get_project_by_slug(self, slug: str) -> Project | None: ...

"""Transient value objects passed between the fetcher services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from certfetch.models.certificate import CertRecord
    from certfetch.models.keypair import KeypairRecord


@dataclass(frozen=True)
class RequestDomain:
    """An admitted domain, ready for issuance.

    Attributes
    ----------
    domain:
        Key under which the certificate is stored (``*.<apex>`` for the
        platform wildcard, otherwise the customer domain).
    san:
        Ordered Subject Alternative Names for the order.
    wildcard:
        True for the platform wildcard path.
    account_keypair_id:
        ACME account identity: the platform id for the wildcard, the
        domain itself for customers.
    cert_keypair_id:
        Id of the CERT keypair that signs the CSR.

    """

    domain: str
    san: tuple[str, ...]
    wildcard: bool
    account_keypair_id: str
    cert_keypair_id: str


@dataclass(frozen=True)
class CertAndKeypair:
    """Certificate and its private key, as handed to the TLS layer."""

    cert: CertRecord
    keypair: KeypairRecord

    @property
    def cert_pem(self) -> str:
        return self.cert.cert_pem

    @property
    def chain_pem(self) -> str:
        return self.cert.chain_pem

    @property
    def alt_names(self) -> tuple[str, ...]:
        return self.cert.alt_names

    @property
    def not_before(self) -> datetime:
        return self.cert.issued_at

    @property
    def not_after(self) -> datetime:
        return self.cert.expires_at

    @property
    def private_key_pem(self) -> str:
        return self.keypair.private_key_pem

    @property
    def public_key_pem(self) -> str:
        return self.keypair.public_key_pem

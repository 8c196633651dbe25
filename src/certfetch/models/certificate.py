"""Certificate entity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True)
class CertRecord:
    """Issued certificate for one domain key.

    ``domain`` is either a customer domain or ``*.<apex>``.  ``chain_pem``
    holds the full chain as returned by the CA, leaf first.  ``ttl`` is
    ``expires_at`` in epoch seconds and drives storage expiry.
    """

    domain: str
    cert_pem: str
    chain_pem: str
    alt_names: tuple[str, ...]
    issued_at: datetime
    expires_at: datetime
    ttl: int

    def __post_init__(self) -> None:
        if self.expires_at <= self.issued_at:
            msg = (
                f"Certificate for {self.domain} expires ({self.expires_at}) "
                f"before it is issued ({self.issued_at})"
            )
            raise ValueError(msg)

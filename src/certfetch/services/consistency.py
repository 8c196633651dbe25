"""Detect and repair certificates whose stored key does not match.

Certificates issued before the cutover may have been written alongside
a keypair that was regenerated later.  Serving such a pair fails every
TLS handshake, so the guard compares public keys and, on mismatch,
clears both records so the caller re-issues.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from certfetch.ca.keys import public_keys_match
from certfetch.core.types import ConsistencyVerdict, KeypairType

if TYPE_CHECKING:
    from certfetch.models import CertRecord, KeypairRecord, RequestDomain
    from certfetch.store.base import CertStore

log = logging.getLogger(__name__)


def parse_cutover(value: str) -> datetime:
    """Parse an ISO-8601 instant, assuming UTC when no offset is given."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class ConsistencyGuard:
    def __init__(self, store: CertStore, cutover: datetime) -> None:
        self._store = store
        self._cutover = cutover

    @property
    def cutover(self) -> datetime:
        return self._cutover

    def verify(self, cert: CertRecord, keypair: KeypairRecord) -> ConsistencyVerdict:
        """Check *cert* against *keypair* if it predates the cutover."""
        if cert.issued_at >= self._cutover:
            return ConsistencyVerdict.CONSISTENT
        try:
            matches = public_keys_match(cert.cert_pem, keypair.private_key_pem)
        except (ValueError, TypeError) as exc:
            log.warning("Cannot parse stored certificate or key for %s: %s", cert.domain, exc)
            return ConsistencyVerdict.MISMATCHED
        if matches:
            return ConsistencyVerdict.CONSISTENT
        log.warning("Certificate for %s does not match its stored keypair", cert.domain)
        return ConsistencyVerdict.MISMATCHED

    def repair(self, request: RequestDomain) -> None:
        """Delete the CERT keypair and the certificate so issuance starts clean."""
        log.info("Clearing certificate and keypair for %s", request.domain)
        self._store.delete_keypair(KeypairType.CERT, request.cert_keypair_id)
        self._store.delete_cert(request.domain)

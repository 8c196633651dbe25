"""JSON serialization for the ``/connect`` API.

Each function takes a model entity and produces a dictionary suitable
for ``flask.jsonify``.  The certificate shape is also what
``fetcher.static_cert`` accepts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from certfetch.models import CertAndKeypair, CertRecord, KeypairRecord


def serialize_cert(cert: CertRecord) -> dict:
    return {
        "domain": cert.domain,
        "cert_pem": cert.cert_pem,
        "chain_pem": cert.chain_pem,
        "alt_names": list(cert.alt_names),
        "issued_at": cert.issued_at.isoformat(),
        "expires_at": cert.expires_at.isoformat(),
        "ttl": cert.ttl,
    }


def serialize_keypair(keypair: KeypairRecord) -> dict:
    return {
        "id": keypair.id,
        "public_key_pem": keypair.public_key_pem,
        "private_key_pem": keypair.private_key_pem,
    }


def serialize_cert_and_keypair(pair: CertAndKeypair) -> dict:
    """Serialize a certificate with its private key for a TLS terminator."""
    return {
        "cert": serialize_cert(pair.cert),
        "keypair": serialize_keypair(pair.keypair),
    }

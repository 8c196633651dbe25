"""Key, CSR and certificate helpers built on ``cryptography``.

Keys are stored as PEM text (PKCS#8 private, SubjectPublicKeyInfo
public) so they can be persisted and served without further encoding.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import josepy as jose
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import ExtensionOID, NameOID

from certfetch.core.types import KeyType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

_RSA_SIZES = {
    KeyType.RSA2048: 2048,
    KeyType.RSA3072: 3072,
    KeyType.RSA4096: 4096,
}

# X.520 upper bound for commonName
_MAX_CN_LENGTH = 64


def generate_private_key(key_type: KeyType = KeyType.RSA2048) -> PrivateKeyTypes:
    """Generate a new private key of the requested type."""
    if key_type is KeyType.EC256:
        return ec.generate_private_key(ec.SECP256R1())
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=_RSA_SIZES[key_type],
    )


def private_key_to_pem(key: PrivateKeyTypes) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def public_key_to_pem(key: PrivateKeyTypes) -> str:
    return (
        key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )


def load_private_key(pem: str) -> PrivateKeyTypes:
    return serialization.load_pem_private_key(pem.encode("ascii"), password=None)


def account_jwk(private_key_pem: str) -> tuple[jose.JWK, jose.JWASignature]:
    """Return the JWK and JWS algorithm for an ACME account key."""
    key = load_private_key(private_key_pem)
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return jose.JWKEC(key=key), jose.ES256
    return jose.JWKRSA(key=key), jose.RS256


def build_csr(private_key_pem: str, names: Sequence[str]) -> bytes:
    """Build a PEM-encoded CSR for *names*, signed with the given key.

    The first name becomes the subject CN when it fits; every name is
    listed in the SAN extension, which is what ACME CAs actually read.
    """
    if not names:
        msg = "Cannot build a CSR without any names"
        raise ValueError(msg)

    key = load_private_key(private_key_pem)
    builder = x509.CertificateSigningRequestBuilder()
    if len(names[0]) <= _MAX_CN_LENGTH:
        builder = builder.subject_name(
            x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, names[0])]),
        )
    builder = builder.add_extension(
        x509.SubjectAlternativeName([x509.DNSName(n) for n in names]),
        critical=False,
    )
    csr = builder.sign(key, hashes.SHA256())
    return csr.public_bytes(serialization.Encoding.PEM)


def load_chain(chain_pem: str) -> list[x509.Certificate]:
    """Parse a concatenated PEM chain, leaf first."""
    certs = x509.load_pem_x509_certificates(chain_pem.encode("ascii"))
    if not certs:
        msg = "Certificate chain is empty"
        raise ValueError(msg)
    return certs


def cert_to_pem(cert: x509.Certificate) -> str:
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def dns_names(cert: x509.Certificate) -> tuple[str, ...]:
    """Return the SAN DNS names of *cert* in certificate order."""
    try:
        san = cert.extensions.get_extension_for_oid(
            ExtensionOID.SUBJECT_ALTERNATIVE_NAME,
        )
    except x509.ExtensionNotFound:
        return ()
    return tuple(san.value.get_values_for_type(x509.DNSName))


def public_keys_match(cert_pem: str, private_key_pem: str) -> bool:
    """Compare the certificate's public key with the one derived from the private key."""
    cert = x509.load_pem_x509_certificate(cert_pem.encode("ascii"))
    key = load_private_key(private_key_pem)
    spki = serialization.PublicFormat.SubjectPublicKeyInfo
    cert_spki = cert.public_key().public_bytes(serialization.Encoding.DER, spki)
    key_spki = key.public_key().public_bytes(serialization.Encoding.DER, spki)
    return cert_spki == key_spki

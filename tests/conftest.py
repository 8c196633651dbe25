"""Root conftest for the certfetch test suite."""

from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Minimal config data shared by multiple test modules
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_config_data() -> dict:
    """Return a dict containing the minimum required config fields."""
    return {
        "fetcher": {"apex_domain": "example.com"},
        "acme": {"email": "ops@example.com"},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, minimal_config_data: dict) -> Path:
    """Write *minimal_config_data* to a temp YAML file and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.safe_dump(minimal_config_data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return cfg


@pytest.fixture()
def settings(minimal_config_data: dict):
    """Typed settings built from *minimal_config_data* without ConfigKit."""
    from certfetch.config.settings import build_settings

    return build_settings(minimal_config_data)


# ---------------------------------------------------------------------------
# ConfigKit singleton cleanup -- autouse so every test gets a fresh slate
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the CertfetchConfig singleton before and after every test."""
    from certfetch.config.certfetch_config import CertfetchConfig

    CertfetchConfig.reset()
    yield
    CertfetchConfig.reset()


# ---------------------------------------------------------------------------
# Key and certificate material
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def key_pem() -> str:
    """A P-256 private key PEM; EC keeps the suite fast."""
    from certfetch.ca.keys import generate_private_key, private_key_to_pem
    from certfetch.core.types import KeyType

    return private_key_to_pem(generate_private_key(KeyType.EC256))


@pytest.fixture(scope="session")
def other_key_pem() -> str:
    from certfetch.ca.keys import generate_private_key, private_key_to_pem
    from certfetch.core.types import KeyType

    return private_key_to_pem(generate_private_key(KeyType.EC256))


@pytest.fixture(scope="session")
def make_chain():
    """Return ``make_chain(key_pem, names, not_before, days) -> chain PEM``.

    The chain is a leaf signed by a throwaway issuer, followed by the
    issuer itself.
    """
    from cryptography import x509
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.asymmetric import ec
    from cryptography.x509.oid import NameOID

    from certfetch.ca.keys import cert_to_pem, load_private_key

    issuer_key = ec.generate_private_key(ec.SECP256R1())
    issuer_name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Test Issuer")])
    issuer_cert = (
        x509.CertificateBuilder()
        .subject_name(issuer_name)
        .issuer_name(issuer_name)
        .public_key(issuer_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime(2020, 1, 1, tzinfo=UTC))
        .not_valid_after(datetime(2040, 1, 1, tzinfo=UTC))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(issuer_key, hashes.SHA256())
    )

    def _make(
        leaf_key_pem: str,
        names: tuple[str, ...] = ("example.com",),
        not_before: datetime | None = None,
        days: int = 90,
    ) -> str:
        not_before = not_before or datetime.now(UTC) - timedelta(hours=1)
        leaf_key = load_private_key(leaf_key_pem)
        leaf = (
            x509.CertificateBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, names[0])]))
            .issuer_name(issuer_name)
            .public_key(leaf_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_before + timedelta(days=days))
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(n) for n in names]),
                critical=False,
            )
            .sign(issuer_key, hashes.SHA256())
        )
        return cert_to_pem(leaf) + cert_to_pem(issuer_cert)

    return _make


@pytest.fixture()
def make_record(make_chain, key_pem):
    """Return ``make_record(domain, ...) -> CertRecord`` built from a real chain."""
    from certfetch.ca.keys import cert_to_pem, dns_names, load_chain
    from certfetch.models import CertRecord

    def _make(
        domain: str = "example.com",
        names: tuple[str, ...] | None = None,
        leaf_key_pem: str | None = None,
        not_before: datetime | None = None,
        days: int = 90,
    ) -> CertRecord:
        chain_pem = make_chain(
            leaf_key_pem or key_pem,
            names or (domain.removeprefix("*."),),
            not_before,
            days,
        )
        leaf = load_chain(chain_pem)[0]
        return CertRecord(
            domain=domain,
            cert_pem=cert_to_pem(leaf),
            chain_pem=chain_pem,
            alt_names=dns_names(leaf),
            issued_at=leaf.not_valid_before_utc,
            expires_at=leaf.not_valid_after_utc,
            ttl=int(leaf.not_valid_after_utc.timestamp()),
        )

    return _make


@pytest.fixture()
def cert_keypair(key_pem):
    """CERT KeypairRecord factory for *key_pem* (or another key)."""
    from certfetch.ca.keys import load_private_key, public_key_to_pem
    from certfetch.core.types import KeypairType
    from certfetch.models import KeypairRecord

    def _make(keypair_id: str = "example.com", pem: str | None = None) -> KeypairRecord:
        pem = pem or key_pem
        return KeypairRecord(
            id=keypair_id,
            type=KeypairType.CERT,
            public_key_pem=public_key_to_pem(load_private_key(pem)),
            private_key_pem=pem,
        )

    return _make


# ---------------------------------------------------------------------------
# Logger isolation -- configure_logging() detaches the "certfetch" logger
# from the root, which would hide records from caplog in later tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def certfetch_logger():
    """Restore the ``certfetch`` logger's level, handlers and propagation."""
    import logging

    logger = logging.getLogger("certfetch")
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield logger
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]
    logger.propagate = saved[2]

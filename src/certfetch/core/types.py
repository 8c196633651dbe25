"""Enumerated types shared across certfetch.

All enums inherit from :class:`enum.StrEnum` so their ``.value`` is a
plain string that psycopg serialises as TEXT and JSON round-trips
naturally.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Keypairs
# ---------------------------------------------------------------------------


class KeypairType(StrEnum):
    ACCOUNT = "account"
    CERT = "cert"


class KeyType(StrEnum):
    RSA2048 = "rsa2048"
    RSA3072 = "rsa3072"
    RSA4096 = "rsa4096"
    EC256 = "ec256"


# ---------------------------------------------------------------------------
# ACME resources
# ---------------------------------------------------------------------------


class AcmeStatus(StrEnum):
    """Status of an ACME order, authorization or challenge (RFC 8555 §7.1.6)."""

    UNKNOWN = "unknown"
    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    VALID = "valid"
    INVALID = "invalid"
    REVOKED = "revoked"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"

    @classmethod
    def _missing_(cls, value: object) -> AcmeStatus:
        return cls.UNKNOWN


class ChallengeType(StrEnum):
    HTTP_01 = "http-01"
    DNS_01 = "dns-01"


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------


class ConsistencyVerdict(StrEnum):
    CONSISTENT = "consistent"
    MISMATCHED = "mismatched"

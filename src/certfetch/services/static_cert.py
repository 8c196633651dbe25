"""A fixed certificate served for every domain.

Operators can pin ``fetcher.static_cert`` to a JSON document in the
shape returned by ``GET /connect/cert/<domain>``::

    {
      "cert": {"domain": "...", "cert_pem": "...", "chain_pem": "...",
               "alt_names": [...], "issued_at": "...", "expires_at": "..."},
      "keypair": {"id": "...", "public_key_pem": "...", "private_key_pem": "..."}
    }

Environment variables and secret stores often flatten newlines, so
literal ``\\n`` sequences in PEM fields are turned back into newlines.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from certfetch.core.types import KeypairType
from certfetch.models import CertAndKeypair, CertRecord, KeypairRecord

_REQUIRED_CERT_FIELDS = ("domain", "cert_pem", "chain_pem", "issued_at", "expires_at")
_REQUIRED_KEYPAIR_FIELDS = ("public_key_pem", "private_key_pem")


class StaticCertError(ValueError):
    """The configured static certificate cannot be used."""


def _pem(value: str) -> str:
    return value.replace("\\n", "\n")


def _instant(value: Any, field: str) -> datetime:  # noqa: ANN401
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError as exc:
        msg = f"cert.{field} is not an ISO-8601 datetime: {value!r}"
        raise StaticCertError(msg) from exc
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _require(section: dict, name: str, fields: tuple[str, ...]) -> None:
    missing = [f for f in fields if not section.get(f)]
    if missing:
        msg = f"{name} is missing {', '.join(missing)}"
        raise StaticCertError(msg)


def parse_static_cert(raw: str) -> CertAndKeypair:
    """Parse the ``fetcher.static_cert`` JSON document.

    Raises
    ------
    StaticCertError
        If the document is not valid JSON or lacks required fields.

    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"not valid JSON: {exc}"
        raise StaticCertError(msg) from exc
    if not isinstance(data, dict):
        msg = "must be a JSON object"
        raise StaticCertError(msg)

    cert = data.get("cert")
    keypair = data.get("keypair")
    if not isinstance(cert, dict) or not isinstance(keypair, dict):
        msg = "must contain 'cert' and 'keypair' objects"
        raise StaticCertError(msg)
    _require(cert, "cert", _REQUIRED_CERT_FIELDS)
    _require(keypair, "keypair", _REQUIRED_KEYPAIR_FIELDS)

    expires_at = _instant(cert["expires_at"], "expires_at")
    try:
        record = CertRecord(
            domain=cert["domain"],
            cert_pem=_pem(cert["cert_pem"]),
            chain_pem=_pem(cert["chain_pem"]),
            alt_names=tuple(cert.get("alt_names", ())),
            issued_at=_instant(cert["issued_at"], "issued_at"),
            expires_at=expires_at,
            ttl=int(cert.get("ttl") or expires_at.timestamp()),
        )
    except ValueError as exc:
        raise StaticCertError(str(exc)) from exc

    return CertAndKeypair(
        cert=record,
        keypair=KeypairRecord(
            id=keypair.get("id", record.domain),
            type=KeypairType.CERT,
            public_key_pem=_pem(keypair["public_key_pem"]),
            private_key_pem=_pem(keypair["private_key_pem"]),
        ),
    )

"""Internal API for the TLS terminator.

The terminator in front of the platform calls these endpoints with a
shared bearer token:

- ``GET /connect/cert/<domain>``: certificate and key, issuing on demand
- ``GET /connect/challenge/http/<token>``: HTTP-01 key authorization
- ``GET /connect/challenge/dns/<host>``: DNS-01 digests for a TXT host
"""

from __future__ import annotations

import functools
import hmac
import logging
from typing import TYPE_CHECKING, Any

from flask import Blueprint, jsonify, request

from certfetch.api.serializers import serialize_cert_and_keypair
from certfetch.app.context import get_container

if TYPE_CHECKING:
    from collections.abc import Callable

    from flask.typing import ResponseReturnValue

log = logging.getLogger(__name__)

connect_bp = Blueprint("connect", __name__)


class ConnectError(Exception):
    """Rendered as a JSON error body with *status*."""

    def __init__(self, status: int, detail: str, headers: dict | None = None) -> None:
        self.status = status
        self.detail = detail
        self.headers = headers or {}
        super().__init__(detail)


@connect_bp.errorhandler(ConnectError)
def _handle_connect_error(exc: ConnectError) -> ResponseReturnValue:
    return jsonify({"error": exc.detail}), exc.status, exc.headers


def require_token(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Enforce the shared bearer token on connect endpoints."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # noqa: ANN401
        expected = get_container().settings.connect.token
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            raise ConnectError(
                401,
                "Missing or invalid Authorization header",
                headers={"WWW-Authenticate": "Bearer"},
            )
        token = auth_header[7:]
        if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
            log.warning("Rejected connect request with a bad token")
            raise ConnectError(401, "Invalid token", headers={"WWW-Authenticate": "Bearer"})
        return fn(*args, **kwargs)

    return wrapper


@connect_bp.route("/cert/<domain>", methods=["GET"])
@require_token
def get_cert(domain: str) -> ResponseReturnValue:
    pair = get_container().fetcher.get_or_create_cert_and_keypair(domain)
    if pair is None:
        raise ConnectError(404, f"No certificate available for {domain}")
    return jsonify(serialize_cert_and_keypair(pair)), 200


@connect_bp.route("/challenge/http/<token>", methods=["GET"])
@require_token
def get_http_challenge(token: str) -> ResponseReturnValue:
    key_authorization = get_container().store.get_http_challenge(token)
    if key_authorization is None:
        raise ConnectError(404, "Unknown challenge token")
    return jsonify({"result": key_authorization}), 200


@connect_bp.route("/challenge/dns/<host>", methods=["GET"])
@require_token
def get_dns_challenge(host: str) -> ResponseReturnValue:
    fqdn = host if host.endswith(".") else f"{host}."
    digests = get_container().store.get_dns_challenges(fqdn.lower())
    if not digests:
        raise ConnectError(404, f"No DNS challenge for {host}")
    return jsonify({"results": digests}), 200

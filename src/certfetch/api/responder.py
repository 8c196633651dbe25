"""HTTP-01 challenge responder (RFC 8555 §8.3).

``GET /.well-known/acme-challenge/<token>`` returns the stored key
authorization as ``text/plain`` so the CA can validate ownership.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, abort

from certfetch.app.context import get_container

log = logging.getLogger(__name__)

responder_bp = Blueprint("acme_responder", __name__)


@responder_bp.route("/.well-known/acme-challenge/<token>", methods=["GET"])
def acme_challenge(token: str) -> Response:
    key_authorization = get_container().store.get_http_challenge(token)
    if key_authorization is None:
        log.debug("No HTTP-01 challenge for token %s", token)
        abort(404)
    return Response(key_authorization, status=200, mimetype="text/plain")

"""ACME v2 session adapter over certbot's ``acme`` library.

:class:`AcmeSession` exposes just the operations the orchestrator and
challenge strategies need, returning small frozen handles instead of
library resources.  Every library exception is wrapped as
:class:`~certfetch.ca.base.AcmeProtocolFailure`, with ``retryable``
decided by :func:`~certfetch.ca.base.is_retryable`.

Usage::

    session = AcmeSession.open(
        directory_url="https://acme-v02.api.letsencrypt.org/directory",
        account_key_pem=keypair.private_key_pem,
    )
    session.register(email="ops@example.com")
    order = session.new_order(csr_pem)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from acme import client, messages
from acme import errors as acme_errors

from certfetch.ca.base import AcmeProtocolFailure, is_retryable
from certfetch.ca.keys import account_jwk
from certfetch.core.types import AcmeStatus

if TYPE_CHECKING:
    from collections.abc import Generator

log = logging.getLogger(__name__)

_DEFAULT_USER_AGENT = "certfetch"


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChallengeHandle:
    """One challenge offered by an authorization."""

    type: str
    status: AcmeStatus
    token: str
    resource: Any = field(repr=False, compare=False)


@dataclass(frozen=True)
class AuthorizationHandle:
    """One authorization in an order, i.e. one SAN."""

    identifier: str
    wildcard: bool
    status: AcmeStatus
    challenges: tuple[ChallengeHandle, ...]
    resource: Any = field(repr=False, compare=False)

    @property
    def offered_types(self) -> tuple[str, ...]:
        return tuple(c.type for c in self.challenges)

    @property
    def display_name(self) -> str:
        return f"*.{self.identifier}" if self.wildcard else self.identifier


@dataclass(frozen=True)
class OrderHandle:
    uri: str
    status: AcmeStatus
    authorizations: tuple[AuthorizationHandle, ...]
    certificate_url: str | None
    resource: Any = field(repr=False, compare=False)


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------


def _status(resource_status: Any) -> AcmeStatus:  # noqa: ANN401
    if resource_status is None:
        return AcmeStatus.UNKNOWN
    return AcmeStatus(getattr(resource_status, "name", str(resource_status)))


def _challenge_handle(challb: Any) -> ChallengeHandle:  # noqa: ANN401
    chall = challb.chall
    token = chall.encode("token") if hasattr(chall, "token") else ""
    return ChallengeHandle(
        type=getattr(chall, "typ", "unknown"),
        status=_status(challb.status),
        token=token,
        resource=challb,
    )


def _authorization_handle(authzr: Any) -> AuthorizationHandle:  # noqa: ANN401
    body = authzr.body
    return AuthorizationHandle(
        identifier=body.identifier.value,
        wildcard=bool(body.wildcard),
        status=_status(body.status),
        challenges=tuple(_challenge_handle(c) for c in body.challenges),
        resource=authzr,
    )


def _order_handle(orderr: Any) -> OrderHandle:  # noqa: ANN401
    body = orderr.body
    return OrderHandle(
        uri=orderr.uri,
        status=_status(body.status),
        authorizations=tuple(_authorization_handle(a) for a in orderr.authorizations),
        certificate_url=body.certificate,
        resource=orderr,
    )


@contextmanager
def _acme_call(action: str) -> Generator[None, None, None]:
    """Wrap library exceptions raised inside the block."""
    try:
        yield
    except AcmeProtocolFailure:
        raise
    except Exception as exc:  # noqa: BLE001
        exc_type = type(exc).__name__
        msg = f"ACME {action} failed ({exc_type}): {exc}"
        raise AcmeProtocolFailure(msg, retryable=is_retryable(exc)) from exc


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class AcmeSession:
    """An authenticated conversation with one ACME directory.

    Parameters
    ----------
    acme_client:
        A ready :class:`acme.client.ClientV2`.
    jwk:
        The account JWK, needed to compute key authorizations.

    """

    def __init__(self, acme_client: Any, jwk: Any) -> None:  # noqa: ANN401
        self._client = acme_client
        self._jwk = jwk
        self.account_uri: str | None = None

    @classmethod
    def open(  # noqa: PLR0913
        cls,
        *,
        directory_url: str,
        account_key_pem: str,
        user_agent: str = _DEFAULT_USER_AGENT,
        verify_ssl: bool = True,
        timeout: int = 30,
    ) -> AcmeSession:
        """Fetch the directory and build a client signing with the account key."""
        jwk, alg = account_jwk(account_key_pem)
        with _acme_call(f"directory fetch from {directory_url}"):
            net = client.ClientNetwork(
                jwk,
                alg=alg,
                user_agent=user_agent,
                verify_ssl=verify_ssl,
                timeout=timeout,
            )
            directory = client.ClientV2.get_directory(directory_url, net)
            acme_client = client.ClientV2(directory, net=net)
        log.debug("Opened ACME session against %s", directory_url)
        return cls(acme_client, jwk)

    # -- account ------------------------------------------------------------

    def register(self, email: str | None = None) -> str:
        """Find or register the account bound to the session key.

        Registering a key the CA already knows is not an error: the
        server answers with the existing account location, which is then
        queried and attached to the session.

        Returns
        -------
        str
            The account URI.

        """
        registration = messages.NewRegistration.from_data(
            email=email,
            terms_of_service_agreed=True,
        )
        with _acme_call("account registration"):
            try:
                regr = self._client.new_account(registration)
                log.info("Registered new ACME account %s", regr.uri)
            except acme_errors.ConflictError as exc:
                regr = self._client.query_registration(
                    messages.RegistrationResource(
                        uri=exc.location,
                        body=messages.Registration(),
                    ),
                )
                log.debug("Reusing existing ACME account %s", regr.uri)
        self.account_uri = regr.uri
        return regr.uri

    # -- orders -------------------------------------------------------------

    def new_order(self, csr_pem: bytes) -> OrderHandle:
        with _acme_call("order creation"):
            orderr = self._client.new_order(csr_pem)
        order = _order_handle(orderr)
        log.info(
            "Created ACME order %s (%s) for %s",
            order.uri,
            order.status,
            ", ".join(a.display_name for a in order.authorizations),
        )
        return order

    def refresh_order(self, order: OrderHandle) -> OrderHandle:
        with _acme_call(f"order refresh {order.uri}"):
            response = self._post_as_get(order.uri)
            body = messages.Order.from_json(response.json())
            orderr = order.resource.update(body=body)
        return _order_handle(orderr)

    def finalize(self, order: OrderHandle) -> OrderHandle:
        """Submit the CSR the order was created with."""
        with _acme_call(f"order finalization {order.uri}"):
            orderr = self._client.begin_finalization(order.resource)
        return _order_handle(orderr)

    def fetch_certificate(self, order: OrderHandle) -> str:
        """Download the full PEM chain of a valid order."""
        if not order.certificate_url:
            msg = f"Order {order.uri} has no certificate URL (status {order.status})"
            raise AcmeProtocolFailure(msg)
        with _acme_call(f"certificate download {order.certificate_url}"):
            response = self._post_as_get(order.certificate_url)
            return response.text

    # -- authorizations / challenges ----------------------------------------

    def refresh_authorization(self, authz: AuthorizationHandle) -> AuthorizationHandle:
        with _acme_call(f"authorization refresh for {authz.display_name}"):
            authzr, _ = self._client.poll(authz.resource)
        return _authorization_handle(authzr)

    def validation(self, challenge: ChallengeHandle) -> str:
        """Return the value the CA expects for *challenge*.

        The key authorization for HTTP-01, the base64url SHA-256 digest
        of it for DNS-01.
        """
        with _acme_call(f"{challenge.type} validation computation"):
            return challenge.resource.chall.validation(self._jwk)

    def answer(self, challenge: ChallengeHandle) -> None:
        """Tell the CA the challenge is ready to be validated."""
        with _acme_call(f"{challenge.type} challenge answer"):
            response = challenge.resource.chall.response(self._jwk)
            self._client.answer_challenge(challenge.resource, response)

    # -- internals ----------------------------------------------------------

    def _post_as_get(self, url: str) -> Any:  # noqa: ANN401
        return self._client.net.post(
            url,
            None,
            new_nonce_url=self._client.directory["newNonce"],
        )

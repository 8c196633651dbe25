"""Unit tests for certfetch.ca.session -- ACME session adapter."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from acme import errors as acme_errors

from certfetch.ca.base import AcmeProtocolFailure
from certfetch.ca.session import AcmeSession, OrderHandle
from certfetch.core.types import AcmeStatus

# ---------------------------------------------------------------------------
# Fake library resources
# ---------------------------------------------------------------------------


def _status(name):
    return SimpleNamespace(name=name)


def _challb(typ="http-01", status="pending", token="tok123"):
    chall = MagicMock()
    chall.typ = typ
    chall.encode.return_value = token
    return SimpleNamespace(chall=chall, status=_status(status))


def _authzr(value="example.com", wildcard=False, status="pending", challenges=None):
    body = SimpleNamespace(
        identifier=SimpleNamespace(value=value),
        wildcard=wildcard,
        status=_status(status),
        challenges=challenges if challenges is not None else [_challb()],
    )
    return SimpleNamespace(body=body)


def _orderr(status="pending", authorizations=None, certificate=None):
    body = SimpleNamespace(status=_status(status), certificate=certificate)
    orderr = MagicMock()
    orderr.uri = "https://ca.test/order/1"
    orderr.body = body
    orderr.authorizations = authorizations if authorizations is not None else [_authzr()]
    return orderr


def _session(client=None):
    return AcmeSession(client or MagicMock(), jwk=MagicMock())


# ---------------------------------------------------------------------------
# open / register
# ---------------------------------------------------------------------------


class TestOpen:
    @patch("certfetch.ca.session.client")
    def test_builds_client_from_directory(self, mock_client, key_pem):
        session = AcmeSession.open(
            directory_url="https://ca.test/directory",
            account_key_pem=key_pem,
            user_agent="ua",
            verify_ssl=False,
            timeout=7,
        )
        net_kwargs = mock_client.ClientNetwork.call_args.kwargs
        assert net_kwargs["user_agent"] == "ua"
        assert net_kwargs["verify_ssl"] is False
        assert net_kwargs["timeout"] == 7
        mock_client.ClientV2.get_directory.assert_called_once_with(
            "https://ca.test/directory",
            mock_client.ClientNetwork.return_value,
        )
        assert isinstance(session, AcmeSession)

    @patch("certfetch.ca.session.client")
    def test_directory_failure_is_wrapped(self, mock_client, key_pem):
        mock_client.ClientV2.get_directory.side_effect = ConnectionError("refused")
        with pytest.raises(AcmeProtocolFailure) as exc_info:
            AcmeSession.open(directory_url="https://ca.test/directory", account_key_pem=key_pem)
        assert exc_info.value.retryable is True
        assert "directory fetch" in exc_info.value.detail


class TestRegister:
    def test_new_account(self):
        client = MagicMock()
        client.new_account.return_value = SimpleNamespace(uri="https://ca.test/acct/1")
        session = _session(client)

        assert session.register(email="ops@example.com") == "https://ca.test/acct/1"
        assert session.account_uri == "https://ca.test/acct/1"

    def test_existing_account_is_reused(self):
        client = MagicMock()
        client.new_account.side_effect = acme_errors.ConflictError("https://ca.test/acct/9")
        client.query_registration.return_value = SimpleNamespace(uri="https://ca.test/acct/9")
        session = _session(client)

        assert session.register() == "https://ca.test/acct/9"
        regr = client.query_registration.call_args.args[0]
        assert regr.uri == "https://ca.test/acct/9"

    def test_other_errors_are_wrapped(self):
        client = MagicMock()
        client.new_account.side_effect = RuntimeError("unauthorized")
        with pytest.raises(AcmeProtocolFailure, match="account registration failed"):
            _session(client).register()


# ---------------------------------------------------------------------------
# orders
# ---------------------------------------------------------------------------


class TestOrders:
    def test_new_order_converts_handles(self):
        client = MagicMock()
        client.new_order.return_value = _orderr(
            authorizations=[
                _authzr("example.com"),
                _authzr(
                    "example.com",
                    wildcard=True,
                    challenges=[_challb("dns-01", token="t2")],
                ),
            ],
        )
        order = _session(client).new_order(b"csr")

        assert order.status is AcmeStatus.PENDING
        assert [a.display_name for a in order.authorizations] == ["example.com", "*.example.com"]
        assert order.authorizations[1].offered_types == ("dns-01",)
        assert order.authorizations[1].challenges[0].token == "t2"

    def test_finalize_uses_begin_finalization(self):
        client = MagicMock()
        client.begin_finalization.return_value = _orderr(status="processing")
        session = _session(client)
        order = OrderHandle("u", AcmeStatus.READY, (), None, resource=MagicMock())

        assert session.finalize(order).status is AcmeStatus.PROCESSING
        client.begin_finalization.assert_called_once_with(order.resource)

    def test_fetch_certificate_without_url(self):
        order = OrderHandle("u", AcmeStatus.PROCESSING, (), None, resource=None)
        with pytest.raises(AcmeProtocolFailure, match="no certificate URL"):
            _session().fetch_certificate(order)

    def test_fetch_certificate_post_as_get(self):
        client = MagicMock()
        client.directory = {"newNonce": "https://ca.test/nonce"}
        client.net.post.return_value = SimpleNamespace(text="PEM CHAIN")
        order = OrderHandle("u", AcmeStatus.VALID, (), "https://ca.test/cert/1", resource=None)

        assert _session(client).fetch_certificate(order) == "PEM CHAIN"
        client.net.post.assert_called_once_with(
            "https://ca.test/cert/1",
            None,
            new_nonce_url="https://ca.test/nonce",
        )

    @patch("certfetch.ca.session.messages")
    def test_refresh_order_updates_resource(self, mock_messages):
        client = MagicMock()
        client.directory = {"newNonce": "https://ca.test/nonce"}
        resource = MagicMock()
        resource.update.return_value = _orderr(status="valid", certificate="https://ca.test/c")
        order = OrderHandle("https://ca.test/order/1", AcmeStatus.PROCESSING, (), None, resource)

        refreshed = _session(client).refresh_order(order)

        assert refreshed.status is AcmeStatus.VALID
        assert refreshed.certificate_url == "https://ca.test/c"
        resource.update.assert_called_once_with(body=mock_messages.Order.from_json.return_value)


# ---------------------------------------------------------------------------
# challenges
# ---------------------------------------------------------------------------


class TestChallenges:
    def test_refresh_authorization_polls(self):
        client = MagicMock()
        client.poll.return_value = (_authzr(status="valid"), MagicMock())
        session = _session(client)
        order = _session(MagicMock(new_order=MagicMock(return_value=_orderr()))).new_order(b"c")

        refreshed = session.refresh_authorization(order.authorizations[0])
        assert refreshed.status is AcmeStatus.VALID

    def test_validation_and_answer_use_account_jwk(self):
        client = MagicMock()
        session = _session(client)
        challb = _challb()
        challb.chall.validation.return_value = "tok123.thumb"
        client.new_order.return_value = _orderr(authorizations=[_authzr(challenges=[challb])])
        challenge = session.new_order(b"c").authorizations[0].challenges[0]

        assert session.validation(challenge) == "tok123.thumb"
        challb.chall.validation.assert_called_once_with(session._jwk)

        session.answer(challenge)
        client.answer_challenge.assert_called_once_with(
            challb,
            challb.chall.response.return_value,
        )

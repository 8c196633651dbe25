"""Shared fixtures for challenge strategy tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from certfetch.ca.session import AuthorizationHandle, ChallengeHandle
from certfetch.core.types import AcmeStatus


def make_authz(
    identifier="example.com",
    *,
    wildcard=False,
    status=AcmeStatus.PENDING,
    offered=(("http-01", AcmeStatus.PENDING), ("dns-01", AcmeStatus.PENDING)),
):
    challenges = tuple(
        ChallengeHandle(type=t, status=s, token=f"tok-{t}", resource=MagicMock())
        for t, s in offered
    )
    return AuthorizationHandle(
        identifier=identifier,
        wildcard=wildcard,
        status=status,
        challenges=challenges,
        resource=MagicMock(),
    )


@pytest.fixture()
def authz_factory():
    return make_authz


@pytest.fixture()
def session():
    """A mock AcmeSession whose authorizations turn VALID on first poll."""
    mock = MagicMock()
    mock.validation.side_effect = lambda challenge: f"value-for-{challenge.token}"
    mock.refresh_authorization.side_effect = lambda authz: make_authz(
        authz.identifier,
        wildcard=authz.wildcard,
        status=AcmeStatus.VALID,
    )
    return mock

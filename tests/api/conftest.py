"""Fixtures for API tests: a Flask app over an in-memory container."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from certfetch.app import create_app
from certfetch.app.context import Container
from certfetch.config.settings import build_settings

TOKEN = "t" * 32


@pytest.fixture()
def api_settings(minimal_config_data):
    data = dict(minimal_config_data)
    data["connect"] = {"token": TOKEN}
    data["store"] = {"project_slugs": ["shop.customer.io"]}
    return build_settings(data)


@pytest.fixture()
def container(api_settings):
    container = Container(api_settings, session_factory=MagicMock(), sleep=lambda _s: None)
    yield container
    container.shutdown()


@pytest.fixture()
def app(api_settings, container):
    return create_app(config=SimpleNamespace(settings=api_settings), container=container)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def auth():
    return {"Authorization": f"Bearer {TOKEN}"}

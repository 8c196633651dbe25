"""Tests for the typed settings builders."""

from __future__ import annotations

import pytest

from certfetch.config.settings import (
    DEFAULT_CUTOVER,
    LETSENCRYPT_DIRECTORY_URL,
    build_settings,
)


class TestDefaults:
    def test_defaults(self, settings):
        assert settings.fetcher.enabled is True
        assert settings.fetcher.platform_account_id == "platform-wildcard"
        assert settings.fetcher.static_cert is None
        assert settings.renewal.expiry_range_min_days == 30
        assert settings.renewal.expiry_range_max_days == 60
        assert settings.consistency.cutover == DEFAULT_CUTOVER
        assert settings.acme.directory_url == LETSENCRYPT_DIRECTORY_URL
        assert settings.acme.cert_key_type == "rsa2048"
        assert settings.polling.attempts == 10
        assert settings.polling.interval_seconds == 3
        assert settings.challenges.enabled == ("http-01", "dns-01")
        assert settings.challenges.dns01.self_check is True
        assert settings.challenges.dns_publisher.configured is False
        assert settings.connect.token is None
        assert settings.server.port == 8080
        assert settings.logging.format == "json"
        assert settings.database is None

    def test_settings_are_frozen(self, settings):
        with pytest.raises(AttributeError):
            settings.fetcher.enabled = False


class TestOverrides:
    def test_sections(self):
        settings = build_settings(
            {
                "fetcher": {"apex_domain": "Platform.IO.", "enabled": False},
                "challenges": {
                    "enabled": ["dns-01"],
                    "dns01": {"resolvers": ["1.1.1.1"]},
                    "dns_publisher": {"create_script": "/a", "delete_script": "/b"},
                },
                "store": {"project_slugs": ["Shop.Customer.io"]},
                "database": {"database": "certfetch", "user": "svc"},
            },
        )

        assert settings.fetcher.apex_domain == "platform.io"
        assert settings.fetcher.enabled is False
        assert settings.challenges.enabled == ("dns-01",)
        assert settings.challenges.dns01.resolvers == ("1.1.1.1",)
        assert settings.challenges.dns_publisher.configured is True
        assert settings.store.project_slugs == ("shop.customer.io",)
        assert settings.database.host == "localhost"
        assert settings.database.port == 5432
        assert settings.database.auto_setup is False

    def test_missing_apex_raises(self):
        with pytest.raises(KeyError):
            build_settings({"fetcher": {}})

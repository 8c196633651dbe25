"""Tests for certfetch.models entities."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, replace
from datetime import UTC, datetime

import pytest

from certfetch.models import CertAndKeypair, CertRecord


class TestCertRecord:
    def test_expiry_must_follow_issue(self, make_record):
        record = make_record()
        with pytest.raises(ValueError, match="expires"):
            replace(record, expires_at=record.issued_at)

    def test_frozen(self, make_record):
        with pytest.raises(FrozenInstanceError):
            make_record().domain = "other.example"

    def test_plain_construction(self):
        record = CertRecord(
            domain="example.com",
            cert_pem="",
            chain_pem="",
            alt_names=("example.com",),
            issued_at=datetime(2030, 1, 1, tzinfo=UTC),
            expires_at=datetime(2030, 4, 1, tzinfo=UTC),
            ttl=0,
        )
        assert record.alt_names == ("example.com",)


class TestCertAndKeypair:
    def test_accessors(self, make_record, cert_keypair, key_pem):
        record = make_record()
        pair = CertAndKeypair(cert=record, keypair=cert_keypair())

        assert pair.cert_pem == record.cert_pem
        assert pair.chain_pem == record.chain_pem
        assert pair.not_before == record.issued_at
        assert pair.not_after == record.expires_at
        assert pair.private_key_pem == key_pem
        assert pair.public_key_pem.startswith("-----BEGIN PUBLIC KEY-----")

"""Ephemeral challenge material entities."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class HttpChallengeRecord:
    token: str
    key_authorization: str


@dataclass(frozen=True)
class DnsChallengeRecord:
    host_name: str
    digest: str

"""Keypair entity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from certfetch.core.types import KeypairType


@dataclass(frozen=True)
class KeypairRecord:
    id: str
    type: KeypairType
    public_key_pem: str
    private_key_pem: str

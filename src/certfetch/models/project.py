"""Customer project entity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

_EPOCH = datetime(1970, 1, 1)


@dataclass(frozen=True)
class Project:
    slug: str
    created_at: datetime = _EPOCH

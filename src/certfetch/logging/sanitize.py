"""Key material redaction for log output.

Certificates and private keys travel through the fetcher as PEM text.
:func:`sanitize_pem` strips the base64 bodies so a stray ``%s`` of a
record never leaks a private key into the logs.
"""

from __future__ import annotations

import re
from typing import Any

# Regex matching the base64 body inside PEM blocks
_PEM_BODY_RE = re.compile(
    r"(-----BEGIN [A-Z0-9 ]+-----)"
    r"([\s\S]*?)"
    r"(-----END [A-Z0-9 ]+-----)",
)


def sanitize_pem(pem: str) -> str:
    """Replace the base64 body of PEM blocks with ``[REDACTED]``.

    Preserves BEGIN/END markers so the type of object is still visible.
    """

    def _redact(m: re.Match[str]) -> str:
        return f"{m.group(1)}\n[REDACTED]\n{m.group(3)}"

    return _PEM_BODY_RE.sub(_redact, pem)


def sanitize_for_logs(data: Any) -> Any:  # noqa: ANN401
    """Recursively redact PEM bodies found in *data*."""
    if isinstance(data, dict):
        return {k: sanitize_for_logs(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return type(data)(sanitize_for_logs(item) for item in data)
    if isinstance(data, str) and "-----BEGIN " in data:
        return sanitize_pem(data)
    return data

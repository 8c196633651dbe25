"""Error taxonomy for ACME orchestration.

Every failure raised while talking to the CA, completing a challenge
or polling a resource is an :class:`AcmeProtocolFailure`.  Library
exceptions are wrapped at the :mod:`certfetch.ca.session` boundary so
callers never need to know which ACME client is underneath.
"""

from __future__ import annotations

_RETRYABLE_PATTERNS = (
    "timeout",
    "connection",
    "network",
    "server",
    "503",
    "429",
)


class AcmeProtocolFailure(Exception):
    """Raised when any step of certificate issuance fails.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    retryable:
        Whether the failure is transient and the operation may be retried.

    """

    def __init__(self, detail: str, *, retryable: bool = False) -> None:
        self.detail = detail
        self.retryable = retryable
        super().__init__(detail)


class ChallengeTimeout(AcmeProtocolFailure):
    """A polling loop exhausted its attempt budget.

    Raised for authorization, order and DNS-propagation polling.  Always
    retryable: the resource may still settle before the next attempt.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(detail, retryable=True)


class DnsPublishError(AcmeProtocolFailure):
    """The DNS publisher refused or failed to publish a TXT value."""


def is_retryable(exc: BaseException) -> bool:
    """Determine whether an upstream error is retryable via heuristics."""
    exc_name = type(exc).__name__.lower()
    msg = str(exc).lower()
    return any(p in exc_name or p in msg for p in _RETRYABLE_PATTERNS)

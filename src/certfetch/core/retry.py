"""Bounded fixed-interval polling.

Every remote resource certfetch waits on (authorizations, orders, DNS
propagation) is polled through :func:`poll_until`, which caps total wall
time at ``attempts * interval_seconds``.

Usage::

    from certfetch.core.retry import RetryPolicy, poll_until

    authz = poll_until(
        lambda: session.refresh_authorization(authz),
        done=lambda a: a.status is AcmeStatus.VALID,
        failed=lambda a: a.status is AcmeStatus.INVALID,
        policy=RetryPolicy(),
        what="authorization for example.com",
    )
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from certfetch.ca.base import AcmeProtocolFailure, ChallengeTimeout

if TYPE_CHECKING:
    from collections.abc import Callable

    from certfetch.config.settings import PollingSettings

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget for a polling loop."""

    attempts: int = 10
    interval_seconds: float = 3.0

    @classmethod
    def from_settings(cls, settings: PollingSettings) -> RetryPolicy:
        return cls(
            attempts=settings.attempts,
            interval_seconds=settings.interval_seconds,
        )


def poll_until(  # noqa: PLR0913
    refresh: Callable[[], T],
    *,
    done: Callable[[T], bool],
    policy: RetryPolicy,
    what: str,
    failed: Callable[[T], bool] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call *refresh* until *done* holds, sleeping between attempts.

    Parameters
    ----------
    refresh:
        Fetches the current state of the resource.  Called once per
        attempt, including the first.
    done:
        Returns True when the resource has reached its target state.
    policy:
        Attempt count and fixed delay between attempts.
    what:
        Description of the resource used in log and error messages.
    failed:
        Optional predicate for a terminal failure state.  Checked before
        *done* so polling stops as soon as the resource is known bad.
    sleep:
        Injected for tests.

    Returns
    -------
    T
        The last refreshed value, which satisfies *done*.

    Raises
    ------
    AcmeProtocolFailure
        If *failed* holds for a refreshed value.
    ChallengeTimeout
        If the attempt budget is exhausted.

    """
    for attempt in range(1, policy.attempts + 1):
        value = refresh()
        if failed is not None and failed(value):
            msg = f"{what} failed on attempt {attempt}"
            raise AcmeProtocolFailure(msg)
        if done(value):
            log.debug("%s settled after %d attempt(s)", what, attempt)
            return value
        if attempt < policy.attempts:
            sleep(policy.interval_seconds)

    msg = (
        f"{what} did not complete after {policy.attempts} attempts "
        f"({policy.interval_seconds:g}s apart)"
    )
    raise ChallengeTimeout(msg)

"""Abstract base class for challenge completion strategies.

A strategy knows how to make one challenge type provable to the CA:

- :meth:`~ChallengeStrategy.prepare` computes the material (token or TXT
  host, and the value the CA expects)
- :meth:`~ChallengeStrategy.setup` makes the material reachable
- :meth:`~ChallengeStrategy.trigger` asks the CA to validate
- :meth:`~ChallengeStrategy.verify` polls the authorization to VALID
- :meth:`~ChallengeStrategy.teardown` removes the material again

Sequencing and the teardown guarantee live in
:class:`~certfetch.challenge.completer.ChallengeCompleter`.
"""

from __future__ import annotations

import abc
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from certfetch.core.retry import RetryPolicy, poll_until
from certfetch.core.types import AcmeStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from certfetch.ca.session import AcmeSession, AuthorizationHandle, ChallengeHandle
    from certfetch.core.types import ChallengeType
    from certfetch.store.base import CertStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChallengeMaterial:
    """What has to be published for one challenge.

    Attributes
    ----------
    identifier:
        The authorization's display name, for logging.
    name:
        HTTP-01 token, or DNS-01 TXT host.
    value:
        HTTP-01 key authorization, or DNS-01 digest.

    """

    identifier: str
    name: str
    value: str


class ChallengeStrategy(abc.ABC):
    """Base class for challenge strategies.

    Parameters
    ----------
    store:
        Where challenge material is persisted for the responder.
    policy:
        Attempt budget for authorization polling.
    sleep:
        Injected for tests.

    """

    challenge_type: ClassVar[ChallengeType]

    def __init__(
        self,
        store: CertStore,
        *,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @abc.abstractmethod
    def prepare(
        self,
        session: AcmeSession,
        authz: AuthorizationHandle,
        challenge: ChallengeHandle,
    ) -> ChallengeMaterial:
        """Compute the material for *challenge*.  Has no side effects."""

    @abc.abstractmethod
    def setup(self, material: ChallengeMaterial) -> None:
        """Make *material* reachable by the CA."""

    def trigger(self, session: AcmeSession, challenge: ChallengeHandle) -> None:
        session.answer(challenge)

    def verify(self, session: AcmeSession, authz: AuthorizationHandle) -> AuthorizationHandle:
        """Poll *authz* until VALID.

        Raises
        ------
        AcmeProtocolFailure
            If the CA marks the authorization INVALID.
        ChallengeTimeout
            If the attempt budget runs out first.

        """
        return poll_until(
            lambda: session.refresh_authorization(authz),
            done=lambda a: a.status is AcmeStatus.VALID,
            failed=lambda a: a.status is AcmeStatus.INVALID,
            policy=self._policy,
            what=f"{self.challenge_type} authorization for {authz.display_name}",
            sleep=self._sleep,
        )

    @abc.abstractmethod
    def teardown(self, material: ChallengeMaterial) -> None:
        """Remove everything :meth:`setup` created.  Safe to call after a partial setup."""

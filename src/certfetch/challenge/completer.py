"""Drive one authorization to VALID.

Usage::

    completer = ChallengeCompleter({
        ChallengeType.HTTP_01: Http01Strategy(store),
        ChallengeType.DNS_01: Dns01Strategy(store, settings.challenges.dns01),
    })
    completer.complete(session, authz)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from certfetch.ca.base import AcmeProtocolFailure
from certfetch.core.types import AcmeStatus, ChallengeType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from certfetch.ca.session import AcmeSession, AuthorizationHandle, ChallengeHandle
    from certfetch.challenge.base import ChallengeMaterial, ChallengeStrategy

log = logging.getLogger(__name__)

PREFERENCE = (ChallengeType.HTTP_01, ChallengeType.DNS_01)


class ChallengeCompleter:
    """Select a strategy per authorization and run it to completion.

    Parameters
    ----------
    strategies:
        Enabled strategies keyed by challenge type.  Types missing from
        the mapping are never attempted.

    """

    def __init__(self, strategies: Mapping[ChallengeType, ChallengeStrategy]) -> None:
        self._strategies = dict(strategies)

    @property
    def enabled_types(self) -> tuple[ChallengeType, ...]:
        return tuple(t for t in PREFERENCE if t in self._strategies)

    def complete(self, session: AcmeSession, authz: AuthorizationHandle) -> None:
        """Complete *authz*, tearing down whatever was set up.

        Raises
        ------
        AcmeProtocolFailure
            If no usable challenge is offered, or setup, trigger or
            polling fails.
        ChallengeTimeout
            If polling exhausts its attempt budget.

        """
        if authz.status is AcmeStatus.VALID:
            log.debug("Authorization for %s already valid", authz.display_name)
            return

        challenge, strategy = self._select(authz)
        material = strategy.prepare(session, authz, challenge)
        log.info("Completing %s for %s", challenge.type, authz.display_name)
        try:
            strategy.setup(material)
            if challenge.status is AcmeStatus.VALID:
                log.debug("%s challenge for %s already valid", challenge.type, authz.display_name)
                return
            strategy.trigger(session, challenge)
            strategy.verify(session, authz)
            log.info("Authorization for %s is valid", authz.display_name)
        finally:
            self._teardown(strategy, material)

    def _select(self, authz: AuthorizationHandle) -> tuple[ChallengeHandle, ChallengeStrategy]:
        offered = {c.type: c for c in authz.challenges}
        for ctype in self.enabled_types:
            challenge = offered.get(ctype.value)
            if challenge is not None:
                return challenge, self._strategies[ctype]
        msg = (
            f"No enabled challenge type for {authz.display_name}: "
            f"offered {', '.join(authz.offered_types) or 'none'}, "
            f"enabled {', '.join(self.enabled_types) or 'none'}"
        )
        raise AcmeProtocolFailure(msg)

    @staticmethod
    def _teardown(strategy: ChallengeStrategy, material: ChallengeMaterial) -> None:
        try:
            strategy.teardown(material)
        except Exception:  # noqa: BLE001
            log.warning(
                "Teardown of %s for %s failed",
                strategy.challenge_type,
                material.identifier,
                exc_info=True,
            )

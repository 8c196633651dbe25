"""HTTP-01 challenge strategy (RFC 8555 §8.3).

The key authorization is stored under its token; the HTTP responder at
``/.well-known/acme-challenge/<token>`` serves it from the store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from certfetch.challenge.base import ChallengeMaterial, ChallengeStrategy
from certfetch.core.types import ChallengeType

if TYPE_CHECKING:
    from certfetch.ca.session import AcmeSession, AuthorizationHandle, ChallengeHandle

log = logging.getLogger(__name__)


class Http01Strategy(ChallengeStrategy):
    challenge_type = ChallengeType.HTTP_01

    def prepare(
        self,
        session: AcmeSession,
        authz: AuthorizationHandle,
        challenge: ChallengeHandle,
    ) -> ChallengeMaterial:
        return ChallengeMaterial(
            identifier=authz.display_name,
            name=challenge.token,
            value=session.validation(challenge),
        )

    def setup(self, material: ChallengeMaterial) -> None:
        self._store.set_http_challenge(material.name, material.value)
        log.debug("HTTP-01 token %s stored for %s", material.name, material.identifier)

    def teardown(self, material: ChallengeMaterial) -> None:
        self._store.delete_http_challenge(material.name)

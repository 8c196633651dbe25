"""Challenge completion: strategies per type and the completer that sequences them."""

from certfetch.challenge.base import ChallengeMaterial, ChallengeStrategy
from certfetch.challenge.completer import ChallengeCompleter
from certfetch.challenge.dns01 import Dns01Strategy
from certfetch.challenge.http01 import Http01Strategy

__all__ = [
    "ChallengeCompleter",
    "ChallengeMaterial",
    "ChallengeStrategy",
    "Dns01Strategy",
    "Http01Strategy",
]

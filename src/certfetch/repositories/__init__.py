"""Repository classes for the certfetch persistence layer.

Each repository extends :class:`pypgkit.BaseRepository` with the
queries the PostgreSQL stores need.
"""

from certfetch.repositories.certificate import CertRepository
from certfetch.repositories.challenge import DnsChallengeRepository, HttpChallengeRepository
from certfetch.repositories.keypair import KeypairRepository
from certfetch.repositories.project import ProjectRepository

__all__ = [
    "CertRepository",
    "DnsChallengeRepository",
    "HttpChallengeRepository",
    "KeypairRepository",
    "ProjectRepository",
]

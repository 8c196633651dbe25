"""Entity models for certfetch.

All models are frozen dataclasses.  Use :func:`dataclasses.replace`
for modifications (copy-on-write).
"""

from certfetch.models.certificate import CertRecord
from certfetch.models.challenge import DnsChallengeRecord, HttpChallengeRecord
from certfetch.models.keypair import KeypairRecord
from certfetch.models.project import Project
from certfetch.models.request import CertAndKeypair, RequestDomain

__all__ = [
    "CertAndKeypair",
    "CertRecord",
    "DnsChallengeRecord",
    "HttpChallengeRecord",
    "KeypairRecord",
    "Project",
    "RequestDomain",
]

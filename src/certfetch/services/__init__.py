"""Certificate lifecycle services.

Public API::

    from certfetch.services import CertFetcher

    pair = fetcher.get_or_create_cert_and_keypair("feedback.example.com")
"""

from certfetch.services.admission import DomainAdmissionPolicy
from certfetch.services.consistency import ConsistencyGuard
from certfetch.services.fetcher import CertFetcher
from certfetch.services.orchestrator import CertificateOrchestrator
from certfetch.services.renewal import RenewalScheduler

__all__ = [
    "CertFetcher",
    "CertificateOrchestrator",
    "ConsistencyGuard",
    "DomainAdmissionPolicy",
    "RenewalScheduler",
]

"""Upstream CA access: ACME session, key and CSR helpers, error types."""

from certfetch.ca.base import AcmeProtocolFailure, ChallengeTimeout, DnsPublishError
from certfetch.ca.session import AcmeSession

__all__ = ["AcmeProtocolFailure", "AcmeSession", "ChallengeTimeout", "DnsPublishError"]

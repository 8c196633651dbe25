"""Decide whether a requested domain may get a certificate, and how.

Platform hosts (the apex and any subdomain of it) are all served by one
wildcard certificate under a shared platform account.  Any other domain
must be the custom domain of a known project and gets its own
certificate under its own account.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from certfetch.models import RequestDomain

if TYPE_CHECKING:
    from certfetch.config.settings import FetcherSettings
    from certfetch.store.base import ProjectStore

log = logging.getLogger(__name__)


def normalize_domain(domain: str) -> str | None:
    """Lower-case and strip a trailing dot; None when unusable."""
    if not domain or any(ch.isspace() for ch in domain):
        return None
    normalized = domain.lower().rstrip(".")
    return normalized or None


class DomainAdmissionPolicy:
    """Map a requested domain to a :class:`RequestDomain`, or reject it.

    Parameters
    ----------
    settings:
        ``fetcher`` section: the platform apex and account id.
    projects:
        Lookup for customer custom domains.

    """

    def __init__(self, settings: FetcherSettings, projects: ProjectStore) -> None:
        self._apex = settings.apex_domain
        self._platform_account_id = settings.platform_account_id
        self._projects = projects

    def resolve(self, domain: str) -> RequestDomain | None:
        """Return the request for *domain*, or None if it is not admitted."""
        normalized = normalize_domain(domain)
        if normalized is None:
            log.debug("Rejecting malformed domain %r", domain)
            return None

        if normalized == self._apex or normalized.endswith(f".{self._apex}"):
            wildcard = f"*.{self._apex}"
            return RequestDomain(
                domain=wildcard,
                san=(self._apex, wildcard),
                wildcard=True,
                account_keypair_id=self._platform_account_id,
                cert_keypair_id=wildcard,
            )

        if self._projects.get_project_by_slug(normalized) is None:
            log.debug("Rejecting %s: no project with that custom domain", normalized)
            return None

        return RequestDomain(
            domain=normalized,
            san=(normalized,),
            wildcard=False,
            account_keypair_id=normalized,
            cert_keypair_id=normalized,
        )

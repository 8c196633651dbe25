"""Persistence and publishing collaborators.

Public API::

    from certfetch.store import CertStore, ProjectStore
    from certfetch.store import InMemoryCertStore, InMemoryProjectStore
"""

from certfetch.store.base import CertStore, ProjectStore
from certfetch.store.memory import InMemoryCertStore, InMemoryProjectStore

__all__ = [
    "CertStore",
    "InMemoryCertStore",
    "InMemoryProjectStore",
    "ProjectStore",
]

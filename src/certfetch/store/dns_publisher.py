"""DNS-01 TXT record publishing.

The authoritative DNS server is an external collaborator; certfetch
only asks it to add or remove a TXT value.  :class:`CallbackDnsPublisher`
does so by running operator-supplied scripts:

- ``create_script <host> <digest>``
- ``delete_script <host> <digest>``

Hosts must match ``allowed_host_regex`` so a compromised request path
cannot write arbitrary records into the zone.
"""

from __future__ import annotations

import abc
import logging
import re
import subprocess
from typing import TYPE_CHECKING

from certfetch.ca.base import DnsPublishError

if TYPE_CHECKING:
    from certfetch.config.settings import DnsPublisherSettings

log = logging.getLogger(__name__)


class DnsPublisher(abc.ABC):
    """Publishes and removes ACME challenge TXT values."""

    @abc.abstractmethod
    def publish(self, host: str, digest: str) -> None:
        """Add *digest* as a TXT value at *host*.

        Raises
        ------
        DnsPublishError
            If the host is not allowed or publication fails.

        """

    @abc.abstractmethod
    def unpublish(self, host: str, digest: str) -> None: ...


class CallbackDnsPublisher(DnsPublisher):
    """Run shell scripts to manage TXT records.

    Parameters
    ----------
    settings:
        The ``challenges.dns_publisher`` configuration section.

    """

    def __init__(self, settings: DnsPublisherSettings) -> None:
        if not settings.create_script or not settings.delete_script:
            msg = "dns_publisher requires both 'create_script' and 'delete_script'"
            raise DnsPublishError(msg)
        self._create_script = settings.create_script
        self._delete_script = settings.delete_script
        self._timeout = settings.script_timeout
        self._allowed = (
            re.compile(settings.allowed_host_regex) if settings.allowed_host_regex else None
        )

    def publish(self, host: str, digest: str) -> None:
        self._check_host(host)
        log.info("DNS publish: %s via %s", host, self._create_script)
        self._run(self._create_script, host, digest)

    def unpublish(self, host: str, digest: str) -> None:
        self._check_host(host)
        log.info("DNS unpublish: %s via %s", host, self._delete_script)
        self._run(self._delete_script, host, digest)

    def _check_host(self, host: str) -> None:
        if self._allowed is not None and not self._allowed.match(host):
            msg = f"DNS host '{host}' does not match the allowed host pattern"
            raise DnsPublishError(msg)

    def _run(self, script: str, host: str, digest: str) -> None:
        try:
            subprocess.run(  # noqa: S603
                [script, host, digest],
                check=True,
                timeout=self._timeout,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as exc:
            msg = (
                f"DNS script {script} exited with {exc.returncode} "
                f"for {host}: {(exc.stderr or '').strip()}"
            )
            raise DnsPublishError(msg) from exc
        except subprocess.TimeoutExpired as exc:
            msg = f"DNS script {script} timed out after {self._timeout}s for {host}"
            raise DnsPublishError(msg, retryable=True) from exc
        except OSError as exc:
            msg = f"DNS script {script} could not be run: {exc}"
            raise DnsPublishError(msg) from exc

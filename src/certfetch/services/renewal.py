"""Background renewal of certificates approaching expiry.

The renewal threshold is drawn once per process from
``[expiry_range_min_days, expiry_range_max_days]`` so that a fleet of
instances spreads renewals over the window instead of hitting the CA
together.  A single worker thread runs renewals; the request path only
ever submits and returns.
"""

from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from certfetch.logging.ratelimit import RateLimitedLog

if TYPE_CHECKING:
    from collections.abc import Callable

    from certfetch.config.settings import RenewalSettings
    from certfetch.models import CertRecord, RequestDomain
    from certfetch.services.orchestrator import CertificateOrchestrator

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RenewalScheduler:
    """Submit renewals for certificates inside the renewal window.

    Parameters
    ----------
    orchestrator:
        Performs the actual issuance.
    settings:
        ``renewal`` section.
    rng:
        Returns a float in ``[0, 1)``; picks the threshold.
    clock:
        Current UTC time, used when ``maybe_schedule`` gets no ``now``.
    failure_log:
        Throttle for renewal failure logging.

    """

    def __init__(  # noqa: PLR0913
        self,
        orchestrator: CertificateOrchestrator,
        settings: RenewalSettings,
        *,
        rng: Callable[[], float] = random.random,
        clock: Callable[[], datetime] = _utcnow,
        failure_log: RateLimitedLog | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._clock = clock
        self._failure_log = failure_log or RateLimitedLog()
        min_days = settings.expiry_range_min_days
        max_days = settings.expiry_range_max_days
        self._threshold = timedelta(days=min_days + rng() * (max_days - min_days))
        self._default_timeout = settings.shutdown_timeout_seconds

        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="certfetch-renewal",
        )
        self._lock = threading.Lock()
        self._in_flight: dict[str, Future] = {}
        self._shutdown_event = threading.Event()

        log.debug("Renewal threshold is %.2f days before expiry", self._threshold.total_seconds() / 86400)

    @property
    def threshold(self) -> timedelta:
        return self._threshold

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown_event.is_set()

    def is_due(self, cert: CertRecord, now: datetime | None = None) -> bool:
        now = now or self._clock()
        return now > cert.expires_at - self._threshold

    def maybe_schedule(
        self,
        request: RequestDomain,
        cert: CertRecord,
        now: datetime | None = None,
    ) -> bool:
        """Submit a renewal of *request* if *cert* is inside the window.

        Never blocks.  A domain with a renewal already queued or running
        is not submitted again.

        Returns
        -------
        bool
            Whether a renewal is due.

        """
        if not self.is_due(cert, now):
            return False

        with self._lock:
            if self._shutdown_event.is_set():
                log.debug("Renewal for %s not scheduled: shutting down", request.domain)
                return True
            if request.domain in self._in_flight:
                return True
            log.info(
                "Scheduling renewal for %s (expires %s)",
                request.domain,
                cert.expires_at.isoformat(),
            )
            future = self._executor.submit(self._renew, request)
            self._in_flight[request.domain] = future
        future.add_done_callback(lambda _f: self._forget(request.domain))
        return True

    def shutdown(self, timeout: float | None = None) -> None:
        """Stop accepting renewals and drain the worker.

        Waits up to *timeout* seconds for queued and running renewals,
        then cancels whatever has not started.  Only the first call has
        effect.
        """
        with self._lock:
            if self._shutdown_event.is_set():
                return
            self._shutdown_event.set()
            pending = list(self._in_flight.values())

        timeout = self._default_timeout if timeout is None else timeout
        _, not_done = wait(pending, timeout=timeout)
        for future in not_done:
            future.cancel()
        self._executor.shutdown(wait=False, cancel_futures=True)

        still_running = [f for f in not_done if f.running()]
        if still_running:
            log.warning(
                "Renewal shutdown timed out after %ss with %d renewal(s) still running",
                timeout,
                len(still_running),
            )
        else:
            log.info("Renewal scheduler shut down")

    # -- internals ----------------------------------------------------------

    def _renew(self, request: RequestDomain) -> None:
        try:
            self._orchestrator.issue(request)
        except Exception:  # noqa: BLE001
            if self._failure_log.allow(request.domain):
                log.warning(
                    "Renewal failed for %s; will retry on next access",
                    request.domain,
                    exc_info=True,
                )

    def _forget(self, domain: str) -> None:
        with self._lock:
            self._in_flight.pop(domain, None)

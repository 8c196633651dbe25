"""``fetch`` and ``issue`` subcommands.

``fetch`` goes through the same path as a TLS handshake and so never
fails loudly.  ``issue`` bypasses the stored certificate and lets ACME
errors reach the operator.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING

from certfetch.ca.base import AcmeProtocolFailure
from certfetch.cli.commands._common import build_container

if TYPE_CHECKING:
    import argparse

    from certfetch.config import CertfetchConfig
    from certfetch.models import CertRecord

log = logging.getLogger(__name__)


def _summary(cert: CertRecord) -> dict:
    return {
        "domain": cert.domain,
        "alt_names": list(cert.alt_names),
        "issued_at": cert.issued_at.isoformat(),
        "expires_at": cert.expires_at.isoformat(),
    }


def run_fetch(config: CertfetchConfig, args: argparse.Namespace) -> None:
    container = build_container(config)
    try:
        pair = container.fetcher.get_or_create_cert_and_keypair(args.domain)
    finally:
        container.shutdown()
    if pair is None:
        sys.stderr.write(f"certfetch: no certificate available for {args.domain}\n")
        sys.exit(1)
    sys.stdout.write(json.dumps(_summary(pair.cert), indent=2) + "\n")


def run_issue(config: CertfetchConfig, args: argparse.Namespace) -> None:
    container = build_container(config)
    try:
        request = container.admission.resolve(args.domain)
        if request is None:
            sys.stderr.write(f"certfetch: {args.domain} is not an admitted domain\n")
            sys.exit(1)
        try:
            cert = container.orchestrator.issue(request)
        except AcmeProtocolFailure as exc:
            if args.debug:
                raise
            sys.stderr.write(
                f"certfetch: issuance failed (retryable={exc.retryable}): {exc.detail}\n",
            )
            sys.exit(1)
    finally:
        container.shutdown()
    sys.stdout.write(json.dumps(_summary(cert), indent=2) + "\n")

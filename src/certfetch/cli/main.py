"""certfetch command-line entry point.

Usage::

    certfetch -c /etc/certfetch/config.yaml
    certfetch -c config.yaml --validate-only
    certfetch -c config.yaml serve --dev
    certfetch -c config.yaml fetch feedback.example.com
    certfetch -c config.yaml issue feedback.example.com
    certfetch -c config.yaml db status
    python -m certfetch -c config.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from certfetch.config import CertfetchConfig

log = logging.getLogger(__name__)


def _get_version() -> str:
    from certfetch import __version__  # noqa: PLC0415

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="certfetch",
        description="certfetch: on-demand ACME certificates for platform and custom domains",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument(
        "--dev",
        action="store_true",
        default=False,
        help="Use Flask's development server instead of gunicorn.",
    )

    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Get or create the certificate for a domain",
    )
    fetch_parser.add_argument("domain", help="Server name to fetch a certificate for")

    issue_parser = subparsers.add_parser(
        "issue",
        help="Force a new issuance for a domain, surfacing any error",
    )
    issue_parser.add_argument("domain", help="Server name to issue a certificate for")

    db_parser = subparsers.add_parser("db", help="Database management")
    db_sub = db_parser.add_subparsers(dest="db_command")
    db_sub.add_parser("status", help="Check database connectivity and schema")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    sys.stderr.write(f"certfetch: error: {message}\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, dispatches."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # Basic stderr logging until the config is loaded
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        from certfetch.config import CertfetchConfig, ConfigValidationError  # noqa: PLC0415

        config = CertfetchConfig(
            config_file=str(config_path),
            schema_file="bundled",
        )
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)
    except Exception as exc:
        if args.debug:
            raise
        _print_error(f"failed to load configuration: {exc}")
        sys.exit(1)

    from certfetch.logging import configure_logging  # noqa: PLC0415

    configure_logging(config.settings.logging)

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    command = args.command
    if command == "fetch":
        from certfetch.cli.commands.certs import run_fetch  # noqa: PLC0415

        run_fetch(config, args)
    elif command == "issue":
        from certfetch.cli.commands.certs import run_issue  # noqa: PLC0415

        run_issue(config, args)
    elif command == "db":
        from certfetch.cli.commands.db import run_db  # noqa: PLC0415

        run_db(config, args)
    else:
        # No subcommand means serve
        from certfetch.cli.commands.serve import run_serve  # noqa: PLC0415

        _print_settings_summary(config)
        run_serve(config, args)


def _print_settings_summary(config: CertfetchConfig) -> None:
    """Print a short summary of the loaded configuration."""
    s = config.settings
    lines = [
        f"certfetch {_get_version()}",
        f"  apex domain : {s.fetcher.apex_domain} (enabled={s.fetcher.enabled})",
        f"  ACME CA     : {s.acme.directory_url}",
        f"  challenges  : {', '.join(s.challenges.enabled)}",
        f"  store       : {s.store.backend}",
        f"  listen      : {s.server.bind}:{s.server.port}",
        f"  connect API : {'enabled' if s.connect.token else 'disabled'}",
    ]
    sys.stdout.write("\n".join(lines) + "\n")

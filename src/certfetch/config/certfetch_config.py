"""certfetch configuration loader built on ConfigKit.

Lifecycle::

    # 1. CLI creates the singleton (once, at startup)
    CertfetchConfig(config_file="/etc/certfetch/config.yaml")

    # 2. Any module retrieves it afterwards
    from certfetch.config import get_config
    cfg = get_config()
    cfg.settings.fetcher.apex_domain  # typed access
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from configkit import ConfigKit, ConfigKitMeta

from certfetch.config.settings import CertfetchSettings, build_settings

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

_KNOWN_CHALLENGE_TYPES = frozenset({"http-01", "dns-01"})

_DOMAIN_RE = re.compile(
    r"^(?=.{1,253}$)([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$",
)

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton reference
# ---------------------------------------------------------------------------
_instance: CertfetchConfig | None = None


def get_config() -> CertfetchConfig:
    """Return the initialised configuration singleton.

    Raises :class:`RuntimeError` if :class:`CertfetchConfig` has not been
    created yet (i.e. the CLI entry point has not run).
    """
    if _instance is None:
        msg = (
            "Configuration not initialised. "
            "CertfetchConfig must be created with config_file= before calling get_config()."
        )
        raise RuntimeError(msg)
    return _instance


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when cross-field validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class CertfetchConfig(ConfigKit):
    """Central configuration for certfetch.

    Subclasses :class:`configkit.ConfigKit`.  The JSON schema is
    bundled at ``config/schema.json``; users supply only ``config_file``.
    """

    def __init__(
        self,
        *,
        config_file: str | Path,
        schema_file: str | Path | None = None,  # noqa: ARG002
    ) -> None:
        """Initialise the configuration singleton.

        Parameters
        ----------
        config_file:
            Path to the YAML/JSON configuration file.
        schema_file:
            Ignored.  Exists only to satisfy the
            :class:`ConfigKitMeta` singleton guard.

        """
        global _instance  # noqa: PLW0603

        super().__init__(
            config_file=config_file,
            schema_file=_SCHEMA_PATH,
        )
        self._settings: CertfetchSettings = build_settings(self.data)
        _instance = self

    def _load(self) -> None:
        """Load config file then resolve ``${VAR}`` env-var references.

        Resolution happens before schema validation so substituted
        values are checked against the schema's constraints.
        """
        super()._load()
        _resolve_env_vars(self._data)  # noqa: SLF001

    @property
    def settings(self) -> CertfetchSettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    # -- cross-field validation ---------------------------------------------

    def additional_checks(self) -> None:  # noqa: C901, PLR0912
        """Semantic & cross-field validation.

        Called automatically by ConfigKit **after** schema validation
        passes.
        """
        errors: list[str] = []
        warnings: list[str] = []

        fetcher = self.data.get("fetcher") or {}
        renewal = self.data.get("renewal") or {}
        consistency = self.data.get("consistency") or {}
        acme = self.data.get("acme") or {}
        polling = self.data.get("polling") or {}
        challenges = self.data.get("challenges") or {}
        store = self.data.get("store") or {}
        server = self.data.get("server") or {}

        # -- fetcher --
        apex = str(fetcher.get("apex_domain", "")).lower().rstrip(".")
        if not _DOMAIN_RE.match(apex):
            errors.append(
                f"fetcher.apex_domain must be a plain domain name (got '{apex}')",
            )

        static_cert = fetcher.get("static_cert")
        if static_cert:
            from certfetch.services.static_cert import (  # noqa: PLC0415
                StaticCertError,
                parse_static_cert,
            )

            try:
                parse_static_cert(static_cert)
            except StaticCertError as exc:
                errors.append(f"fetcher.static_cert is invalid: {exc}")

        # -- renewal --
        min_days = renewal.get("expiry_range_min_days", 30)
        max_days = renewal.get("expiry_range_max_days", 60)
        if min_days > max_days:
            errors.append(
                f"renewal.expiry_range_min_days ({min_days}) must be <= "
                f"renewal.expiry_range_max_days ({max_days})",
            )

        # -- consistency --
        cutover = consistency.get("cutover")
        if cutover is not None:
            try:
                datetime.fromisoformat(str(cutover))
            except ValueError:
                errors.append(
                    f"consistency.cutover must be an ISO-8601 datetime (got '{cutover}')",
                )

        # -- acme --
        if acme.get("verify_ssl") is False:
            warnings.append(
                "acme.verify_ssl is false; the CA's TLS certificate will not be verified",
            )
        if not acme.get("email"):
            warnings.append(
                "acme.email is not set; the CA cannot send expiry notices",
            )

        # -- polling --
        attempts = polling.get("attempts", 10)
        interval = polling.get("interval_seconds", 3)
        server_timeout = server.get("timeout", 120)
        if attempts * interval > server_timeout:
            warnings.append(
                f"polling budget ({attempts} x {interval}s) exceeds "
                f"server.timeout ({server_timeout}s); first issuance on a request "
                "thread may be killed by the worker timeout",
            )

        # -- challenges --
        for ctype in challenges.get("enabled", []):
            if ctype not in _KNOWN_CHALLENGE_TYPES:
                errors.append(f"challenges.enabled contains unknown type '{ctype}'")

        publisher = challenges.get("dns_publisher") or {}
        has_create = bool(publisher.get("create_script"))
        has_delete = bool(publisher.get("delete_script"))
        if has_create != has_delete:
            errors.append(
                "challenges.dns_publisher requires both create_script and "
                "delete_script, or neither",
            )
        pattern = publisher.get("allowed_host_regex")
        if pattern:
            try:
                re.compile(pattern)
            except re.error as exc:
                errors.append(
                    f"challenges.dns_publisher.allowed_host_regex does not compile: {exc}",
                )

        # -- store --
        if store.get("backend", "memory") == "postgres" and not self.data.get("database"):
            errors.append(
                "database section is required when store.backend is 'postgres'",
            )

        for w in warnings:
            log.warning("Config warning: %s", w)

        if errors:
            raise ConfigValidationError(errors)

    # -- helpers ------------------------------------------------------------

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton -- testing only."""
        global _instance  # noqa: PLW0603
        _instance = None
        ConfigKitMeta.reset()

    def __repr__(self) -> str:
        source = self.data.get("_source", "?")
        return f"<CertfetchConfig config_file={source}>"

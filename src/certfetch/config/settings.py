"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders
are what the application actually reads.

Access pattern::

    from certfetch.config import get_config

    fetcher = get_config().settings.fetcher
    print(fetcher.apex_domain)
"""

from __future__ import annotations

from dataclasses import dataclass

LETSENCRYPT_DIRECTORY_URL = "https://acme-v02.api.letsencrypt.org/directory"
DEFAULT_CUTOVER = "2022-05-07T14:07:05Z"

# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetcherSettings:
    """Entry-point behaviour: which domains get certificates and how."""

    enabled: bool
    apex_domain: str
    platform_account_id: str
    static_cert: str | None


def _build_fetcher(data: dict | None) -> FetcherSettings:
    d = data or {}
    return FetcherSettings(
        enabled=d.get("enabled", True),
        apex_domain=d["apex_domain"].lower().rstrip("."),
        platform_account_id=d.get("platform_account_id", "platform-wildcard"),
        static_cert=d.get("static_cert"),
    )


# ---------------------------------------------------------------------------
# Renewal
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenewalSettings:
    """Background renewal window and worker shutdown budget."""

    expiry_range_min_days: int
    expiry_range_max_days: int
    shutdown_timeout_seconds: int


def _build_renewal(data: dict | None) -> RenewalSettings:
    d = data or {}
    return RenewalSettings(
        expiry_range_min_days=d.get("expiry_range_min_days", 30),
        expiry_range_max_days=d.get("expiry_range_max_days", 60),
        shutdown_timeout_seconds=d.get("shutdown_timeout_seconds", 30),
    )


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConsistencySettings:
    """Certificates issued before ``cutover`` have their keypair re-checked."""

    cutover: str


def _build_consistency(data: dict | None) -> ConsistencySettings:
    d = data or {}
    return ConsistencySettings(cutover=d.get("cutover", DEFAULT_CUTOVER))


# ---------------------------------------------------------------------------
# ACME
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AcmeSettings:
    """Upstream ACME CA connection."""

    directory_url: str
    email: str | None
    cert_key_type: str
    verify_ssl: bool
    user_agent: str
    timeout_seconds: int


def _build_acme(data: dict | None) -> AcmeSettings:
    d = data or {}
    return AcmeSettings(
        directory_url=d.get("directory_url", LETSENCRYPT_DIRECTORY_URL),
        email=d.get("email"),
        cert_key_type=d.get("cert_key_type", "rsa2048"),
        verify_ssl=d.get("verify_ssl", True),
        user_agent=d.get("user_agent", "certfetch"),
        timeout_seconds=d.get("timeout_seconds", 30),
    )


# ---------------------------------------------------------------------------
# Polling
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PollingSettings:
    attempts: int
    interval_seconds: float


def _build_polling(data: dict | None) -> PollingSettings:
    d = data or {}
    return PollingSettings(
        attempts=d.get("attempts", 10),
        interval_seconds=d.get("interval_seconds", 3),
    )


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dns01Settings:
    """DNS-01 propagation self-check."""

    self_check: bool
    resolvers: tuple[str, ...]
    timeout_seconds: int


@dataclass(frozen=True)
class DnsPublisherSettings:
    """Scripts that add and remove TXT records at the authoritative DNS."""

    create_script: str | None
    delete_script: str | None
    script_timeout: int
    allowed_host_regex: str | None

    @property
    def configured(self) -> bool:
        return bool(self.create_script and self.delete_script)


@dataclass(frozen=True)
class ChallengeSettings:
    enabled: tuple[str, ...]
    dns01: Dns01Settings
    dns_publisher: DnsPublisherSettings


def _build_challenges(data: dict | None) -> ChallengeSettings:
    d = data or {}
    dns = d.get("dns01") or {}
    pub = d.get("dns_publisher") or {}
    return ChallengeSettings(
        enabled=tuple(d.get("enabled", ["http-01", "dns-01"])),
        dns01=Dns01Settings(
            self_check=dns.get("self_check", True),
            resolvers=tuple(dns.get("resolvers", [])),
            timeout_seconds=dns.get("timeout_seconds", 10),
        ),
        dns_publisher=DnsPublisherSettings(
            create_script=pub.get("create_script"),
            delete_script=pub.get("delete_script"),
            script_timeout=pub.get("script_timeout", 60),
            allowed_host_regex=pub.get("allowed_host_regex"),
        ),
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreSettings:
    """Persistence backend selection."""

    backend: str
    project_slugs: tuple[str, ...]


def _build_store(data: dict | None) -> StoreSettings:
    d = data or {}
    return StoreSettings(
        backend=d.get("backend", "memory"),
        project_slugs=tuple(s.lower() for s in d.get("project_slugs", [])),
    )


# ---------------------------------------------------------------------------
# Connect API
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConnectSettings:
    """Bearer token for the ``/connect`` API; ``None`` disables it."""

    token: str | None


def _build_connect(data: dict | None) -> ConnectSettings:
    d = data or {}
    return ConnectSettings(token=d.get("token"))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerSettings:
    """HTTP server configuration (bind address, workers, timeouts)."""

    bind: str
    port: int
    workers: int
    worker_class: str
    timeout: int
    graceful_timeout: int
    keepalive: int


def _build_server(data: dict | None) -> ServerSettings:
    d = data or {}
    return ServerSettings(
        bind=d.get("bind", "0.0.0.0"),  # noqa: S104
        port=d.get("port", 8080),
        workers=d.get("workers", 2),
        worker_class=d.get("worker_class", "gthread"),
        timeout=d.get("timeout", 120),
        graceful_timeout=d.get("graceful_timeout", 30),
        keepalive=d.get("keepalive", 2),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "json"),
    )


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """PostgreSQL connection and pool settings."""

    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str
    min_connections: int
    max_connections: int
    connection_timeout: float
    auto_setup: bool


def _build_database(data: dict | None) -> DatabaseSettings | None:
    if not data:
        return None
    return DatabaseSettings(
        host=data.get("host", "localhost"),
        port=data.get("port", 5432),
        database=data["database"],
        user=data["user"],
        password=data.get("password", ""),
        sslmode=data.get("sslmode", "prefer"),
        min_connections=data.get("min_connections", 1),
        max_connections=data.get("max_connections", 5),
        connection_timeout=data.get("connection_timeout", 30.0),
        auto_setup=data.get("auto_setup", False),
    )


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CertfetchSettings:
    """Root settings object -- one attribute per config section."""

    fetcher: FetcherSettings
    renewal: RenewalSettings
    consistency: ConsistencySettings
    acme: AcmeSettings
    polling: PollingSettings
    challenges: ChallengeSettings
    store: StoreSettings
    connect: ConnectSettings
    server: ServerSettings
    logging: LoggingSettings
    database: DatabaseSettings | None


def build_settings(data: dict) -> CertfetchSettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`CertfetchConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return CertfetchSettings(
        fetcher=_build_fetcher(data.get("fetcher")),
        renewal=_build_renewal(data.get("renewal")),
        consistency=_build_consistency(data.get("consistency")),
        acme=_build_acme(data.get("acme")),
        polling=_build_polling(data.get("polling")),
        challenges=_build_challenges(data.get("challenges")),
        store=_build_store(data.get("store")),
        connect=_build_connect(data.get("connect")),
        server=_build_server(data.get("server")),
        logging=_build_logging(data.get("logging")),
        database=_build_database(data.get("database")),
    )

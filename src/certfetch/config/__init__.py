"""Configuration subsystem for certfetch.

Public API::

    from certfetch.config import get_config, CertfetchConfig

    # At startup (CLI only):
    CertfetchConfig(config_file="config.yaml")

    # Everywhere else:
    cfg = get_config()
    apex = cfg.settings.fetcher.apex_domain
"""

from certfetch.config.certfetch_config import (
    CertfetchConfig,
    ConfigValidationError,
    get_config,
)
from certfetch.config.settings import (
    AcmeSettings,
    CertfetchSettings,
    ChallengeSettings,
    ConnectSettings,
    ConsistencySettings,
    DatabaseSettings,
    Dns01Settings,
    DnsPublisherSettings,
    FetcherSettings,
    LoggingSettings,
    PollingSettings,
    RenewalSettings,
    ServerSettings,
    StoreSettings,
    build_settings,
)

__all__ = [
    "AcmeSettings",
    "CertfetchConfig",
    "CertfetchSettings",
    "ChallengeSettings",
    "ConfigValidationError",
    "ConnectSettings",
    "ConsistencySettings",
    "DatabaseSettings",
    "Dns01Settings",
    "DnsPublisherSettings",
    "FetcherSettings",
    "LoggingSettings",
    "PollingSettings",
    "RenewalSettings",
    "ServerSettings",
    "StoreSettings",
    "build_settings",
    "get_config",
]

"""
Configuration Module for the EBSI DID Resolver Service

This module defines the configuration system for the resolver service, using Pydantic for settings
validation and dependency injection through AppKeys.

The Settings class is loaded from environment variables with defaults that point at the public EBSI
network. Everything derived from it (the network table, the HTTP session, the resolver) is built once
at start-up and reached by request handlers through typed AppKeys.

Key configuration areas include:
- Service networking
- Registry networks (default network plus any number of extra networks)
- Monitoring and error reporting
"""

import asyncio
import json
import logging
from typing import Annotated, Final, List, Optional
from aiohttp import ClientSession, web
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from social.graze.ebsi.app.metrics import MetricsClient
from social.graze.ebsi.model.health import HealthGauge
from social.graze.ebsi.registry.networks import (
    DEFAULT_NETWORK,
    DEFAULT_REGISTRY,
    DEFAULT_RPC_URL,
    NetworkConfig,
    NetworkTable,
)
from social.graze.ebsi.resolve.did import EbsiResolver

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the resolver service.

    Values are read from environment variables named after the fields (case-insensitive), with aliases
    where the environment variable name differs from the field name.
    """

    debug: bool = False
    """
    Enable debug mode: JSON-RPC request logging and detailed error bodies.
    Set with DEBUG=true environment variable.
    """

    http_port: int = Field(alias="port", default=5200)
    """
    HTTP port for the service to listen on.
    Set with PORT environment variable.
    """

    rpc_url: str = DEFAULT_RPC_URL
    """
    JSON-RPC endpoint of the default (ebsi) network.
    Set with RPC_URL environment variable.
    """

    registry: str = DEFAULT_REGISTRY
    """
    DID registry contract address on the default network.
    Set with REGISTRY environment variable.
    """

    networks: Annotated[List[NetworkConfig], NoDecode] = list()
    """
    Extra networks, as a JSON list of {"name", "rpc_url", "registry"} objects or the path to a JSON
    file holding one. A network named "ebsi" replaces the default network.
    Set with NETWORKS environment variable.
    """

    rpc_timeout: float = 30.0
    """
    Total timeout in seconds for a single JSON-RPC call.
    Set with RPC_TIMEOUT environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    metrics_backend: str = "none"
    """
    Metrics backend, 'telegraf' or 'none'.
    Set with METRICS_BACKEND environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    @field_validator("networks", mode="before")
    @classmethod
    def decode_networks(cls, v):
        """
        Accept a list, a JSON string or a path to a JSON file for the networks setting.

        Raises:
            ValueError: If the value is none of these
        """
        if isinstance(v, list):
            return v
        elif isinstance(v, str):
            if v.strip() == "":
                return []
            if v.lstrip().startswith("["):
                return json.loads(v)
            with open(v) as fd:
                return json.load(fd)
        raise ValueError("networks must be a list, a JSON string or a JSON file path")

    def network_table(self) -> NetworkTable:
        default = NetworkConfig(
            name=DEFAULT_NETWORK, rpc_url=self.rpc_url, registry=self.registry
        )
        return NetworkTable.build(default, self.networks)


# Application context keys for dependency injection
SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

SessionAppKey: Final = web.AppKey("http_session", ClientSession)
"""AppKey for accessing the shared aiohttp client session"""

ResolverAppKey: Final = web.AppKey("resolver", EbsiResolver)
"""AppKey for accessing the did:ebsi resolver"""

MetricsClientAppKey: Final = web.AppKey("metrics_client", MetricsClient)
"""AppKey for accessing the metrics client"""

HealthGaugeAppKey: Final = web.AppKey("health_gauge", HealthGauge)
"""AppKey for accessing the health monitoring gauge"""

TickHealthTaskAppKey: Final = web.AppKey("tick_health_task", asyncio.Task[None])
"""AppKey for the background task that decays the health gauge"""

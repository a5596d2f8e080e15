"""
Dependency Injection for apicontract.

AppContext holds the process-scoped collaborators every handler receives:
settings, the unit-of-work engine, the shared store and the outbound HTTP
client factory. get_settings() loads Settings from APICONTRACT_* variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import httpx

from apicontract.api.client import ClientFactory
from apicontract.config import HealthCheckConfig, LatencyTrackerConfig, LoggingConfig, Settings
from apicontract.transaction import RetryingUnitOfWork, UnitOfWork

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return Settings(
        service_name=os.getenv("APICONTRACT_SERVICE_NAME", "apicontract"),
        environment=os.getenv("APICONTRACT_ENVIRONMENT", "development"),
        localhost_origin=os.getenv("APICONTRACT_LOCALHOST_ORIGIN", "http://localhost:3000"),
        logging=LoggingConfig(
            unittesting=_env_flag("APICONTRACT_UNITTESTING"),
            report_all_errors=_env_flag("APICONTRACT_REPORT_ALL_ERRORS"),
            report_error_detail=_env_flag("APICONTRACT_REPORT_ERROR_DETAIL"),
            level=os.getenv("APICONTRACT_LOG_LEVEL", "INFO"),
        ),
        health_check=HealthCheckConfig(
            disabled=_env_flag("APICONTRACT_HEALTH_CHECK_DISABLED"),
            path=os.getenv("APICONTRACT_HEALTH_CHECK_PATH", "/"),
        ),
        latency_tracker=LatencyTrackerConfig(
            disabled=_env_flag("APICONTRACT_LATENCY_TRACKER_DISABLED"),
            header=os.getenv("APICONTRACT_LATENCY_HEADER", "x-latency-ms"),
        ),
    )


@dataclass
class AppContext:
    """
    Process-scoped collaborators injected into every handler.

    Attributes:
        settings: Application settings
        unit_of_work: Engine running TxAPI attempts
        shared: Process-wide mutable store. Every request on this process
            sees the same dict and nothing synchronizes access to it.
        http_client_factory: Builds the httpx client used by API.call_api()
    """

    settings: Settings
    unit_of_work: UnitOfWork = field(default_factory=RetryingUnitOfWork)
    shared: dict[str, Any] = field(default_factory=dict)
    http_client_factory: ClientFactory = httpx.AsyncClient


__all__ = [
    "AppContext",
    "get_settings",
]

"""
Configuration Schemas for apicontract.

Pydantic models for service settings. Unknown keys are rejected, so a
misspelled option fails at startup instead of being silently ignored.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Environment = Literal["prod", "development", "localhost", "test"]


class LoggingConfig(BaseModel):
    """
    Logging options.

    Attributes:
        unittesting: Running under a test harness; log lines drop the timestamp
        report_all_errors: Log every input validation error, not just the
            first one carried by the error message
        report_error_detail: Include detail and stack in error responses.
            Keep it off for anything reachable by real callers.
        level: Level of the apicontract loggers
    """

    model_config = ConfigDict(extra="forbid")

    unittesting: bool = False
    report_all_errors: bool = False
    report_error_detail: bool = False
    level: str = Field("INFO", description="Log level name, e.g. DEBUG or INFO")


class HealthCheckConfig(BaseModel):
    """Health check route returning an empty 200."""

    model_config = ConfigDict(extra="forbid")

    disabled: bool = False
    path: str = "/"


class LatencyTrackerConfig(BaseModel):
    """Response header carrying the request latency in milliseconds."""

    model_config = ConfigDict(extra="forbid")

    disabled: bool = False
    header: str = "x-latency-ms"


class Settings(BaseModel):
    """
    Application settings.

    Example:
        settings = Settings(
            service_name="todo",
            environment="localhost",
            logging=LoggingConfig(report_error_detail=True),
        )
    """

    model_config = ConfigDict(extra="forbid")

    # Service identity
    service_name: str = Field("apicontract", description="Prefix of every API route")
    environment: Environment = "development"
    localhost_origin: str = Field(
        "http://localhost:3000",
        description="Origin used for CORS and web app redirects in localhost mode",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    health_check: HealthCheckConfig = Field(default_factory=HealthCheckConfig)
    latency_tracker: LatencyTrackerConfig = Field(default_factory=LatencyTrackerConfig)

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"


__all__ = [
    "Environment",
    "HealthCheckConfig",
    "LatencyTrackerConfig",
    "LoggingConfig",
    "Settings",
]

"""
apicontract Configuration

Settings models; see apicontract.app.dependencies.get_settings() for
loading them from the environment.
"""

from .schemas import Environment, HealthCheckConfig, LatencyTrackerConfig, LoggingConfig, Settings

__all__ = [
    "Environment",
    "HealthCheckConfig",
    "LatencyTrackerConfig",
    "LoggingConfig",
    "Settings",
]

"""
Observability for apicontract.

Structured logging and in-process metrics for the request lifecycle:

- JSONLogger: JSON-formatted log lines with a request id and extra context
- RequestLogger: convenience methods for request lifecycle events
- RequestMetrics: counters for requests, attempts, retries and commits

Logging goes through the stdlib logging module; configure_logging() sets up
the root logger from the application settings.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from apicontract.config import Settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEST_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


# =============================================================================
# Log Levels
# =============================================================================


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# JSON Logger
# =============================================================================


@dataclass
class JSONLogger:
    """
    Structured logger that outputs JSON-formatted logs.

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
         "message": "Request completed", "request_id": "abc-123",
         "api": "CreateUserAPI", "status": 200}
    """

    name: str = "apicontract"
    request_id: str | None = None
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        if not self._python_logger.isEnabledFor(getattr(logging, level.name)):
            return

        record = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": level.value,
            "message": message,
            **self.extra_context,
            **context,
        }
        if self.request_id:
            record["request_id"] = self.request_id

        log_method = getattr(self._python_logger, level.value)
        log_method(json.dumps(record, default=str))

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context)

    def with_context(self, **extra: Any) -> JSONLogger:
        """Create a new logger with additional context."""
        return JSONLogger(
            name=self.name,
            request_id=self.request_id,
            extra_context={**self.extra_context, **extra},
        )


# =============================================================================
# Request Logger
# =============================================================================


@dataclass
class RequestLogger:
    """
    Logger for request lifecycle events.

    Example:
        log = RequestLogger(request_id="abc-123", api_name="EchoAPI")
        log.request_started("POST", "/svc/echo")
        log.request_completed(status=200, duration_ms=12.5)
    """

    request_id: str | None = None
    api_name: str = ""
    inner: JSONLogger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.inner = JSONLogger(
            name="apicontract.request",
            request_id=self.request_id,
            extra_context={"api": self.api_name} if self.api_name else {},
        )

    def request_started(self, method: str, path: str) -> None:
        self.inner.debug("Request started", method=method, path=path)

    def request_completed(self, status: int, duration_ms: float) -> None:
        get_metrics().record_request(status)
        self.inner.debug(
            "Request completed",
            status=status,
            duration_ms=round(duration_ms, 2),
        )

    def attempt_failed(
        self,
        attempt: int,
        max_attempts: int,
        error: str,
        error_type: str,
        delay_ms: float,
    ) -> None:
        self.inner.warning(
            "Transaction attempt failed",
            attempt=attempt,
            max_attempts=max_attempts,
            error=error,
            error_type=error_type,
            delay_ms=round(delay_ms, 2),
        )

    def untracked_error(self, error_type: str, status: int, production: bool) -> None:
        level = LogLevel.ERROR if production else LogLevel.WARNING
        self.inner._log(
            level,
            "Untracked error",
            {"error_type": error_type, "status": status, "production": production},
        )


# =============================================================================
# Metrics
# =============================================================================


@dataclass
class RequestMetrics:
    """
    Request and transaction counters.

    Can be exported to Prometheus, StatsD, or other systems.
    """

    requests_total: int = 0
    status_classes: dict[str, int] = field(default_factory=dict)
    tx_attempts: int = 0
    tx_retries: int = 0
    tx_aborts: int = 0
    tx_commits: int = 0
    tx_failures: int = 0

    def record_request(self, status: int) -> None:
        self.requests_total += 1
        status_class = f"{status // 100}xx"
        self.status_classes[status_class] = self.status_classes.get(status_class, 0) + 1

    def record_attempt(self) -> None:
        self.tx_attempts += 1

    def record_retry(self) -> None:
        self.tx_retries += 1

    def record_abort(self) -> None:
        self.tx_aborts += 1

    def record_commit(self) -> None:
        self.tx_commits += 1

    def record_failure(self) -> None:
        self.tx_failures += 1

    def get_stats(self) -> dict[str, Any]:
        return {
            "requests": {
                "total": self.requests_total,
                "by_status_class": dict(self.status_classes),
            },
            "transactions": {
                "attempts": self.tx_attempts,
                "retries": self.tx_retries,
                "aborts": self.tx_aborts,
                "commits": self.tx_commits,
                "failures": self.tx_failures,
            },
        }

    def reset(self) -> None:
        self.requests_total = 0
        self.status_classes.clear()
        self.tx_attempts = 0
        self.tx_retries = 0
        self.tx_aborts = 0
        self.tx_commits = 0
        self.tx_failures = 0


# Global metrics instance (can be replaced with actual metrics backend)
_global_metrics = RequestMetrics()


def get_metrics() -> RequestMetrics:
    """Get the global metrics instance."""
    return _global_metrics


def reset_metrics() -> None:
    """Reset global metrics (useful for testing)."""
    _global_metrics.reset()


def configure_logging(settings: Settings) -> None:
    """
    Configure the root logger from settings.

    Under a test harness (logging.unittesting) lines are short and carry no
    timestamp.
    """
    log_format = TEST_LOG_FORMAT if settings.logging.unittesting else LOG_FORMAT
    logging.basicConfig(level=settings.logging.level.upper(), format=log_format)
    logging.getLogger("apicontract").setLevel(settings.logging.level.upper())


__all__ = [
    "LOG_FORMAT",
    "TEST_LOG_FORMAT",
    "JSONLogger",
    "LogLevel",
    "RequestLogger",
    "RequestMetrics",
    "configure_logging",
    "get_metrics",
    "reset_metrics",
]

"""
Service-level routes and middleware: latency tracking and health check.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI
from fastapi import Request as HTTPRequest
from starlette.responses import Response as StarletteResponse

from apicontract.config import HealthCheckConfig, LatencyTrackerConfig

logger = logging.getLogger(__name__)


def add_latency_tracker(app: FastAPI, config: LatencyTrackerConfig) -> None:
    """Report request latency in a response header and log each request."""
    if config.disabled:
        return
    header = config.header

    @app.middleware("http")
    async def track_latency(
        request: HTTPRequest,
        call_next: Callable[[HTTPRequest], Awaitable[StarletteResponse]],
    ) -> StarletteResponse:
        started = time.perf_counter()
        response = await call_next(request)
        latency = f"{(time.perf_counter() - started) * 1000:.3f}"
        response.headers[header] = latency
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({latency}ms)"
        )
        return response


def add_health_check(app: FastAPI, config: HealthCheckConfig) -> None:
    """Route that returns an empty 200 while the process is up."""
    if config.disabled:
        return

    async def health_check(request: HTTPRequest) -> StarletteResponse:
        return StarletteResponse()

    app.add_route(config.path, health_check, methods=["GET"], include_in_schema=False)


__all__ = [
    "add_health_check",
    "add_latency_tracker",
]

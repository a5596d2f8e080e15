"""
Outbound HTTP calls from handler code.

Handlers call other services with API.call_api(), which forwards the
request headers the API declares. Non-2xx responses are returned, not
raised; the caller decides what a failure means.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], httpx.AsyncClient]


@dataclass(frozen=True)
class APICallResult:
    """Status code and decoded JSON body of an outbound call."""

    code: int
    data: Any = None

    @property
    def is_ok(self) -> bool:
        return self.code == 200


async def call_api(
    client_factory: ClientFactory,
    url: str,
    *,
    method: str = "POST",
    headers: Mapping[str, str] | None = None,
    body: Any = None,
    params: Mapping[str, Any] | None = None,
) -> APICallResult:
    """
    Make one outbound HTTP call.

    Args:
        client_factory: Returns a fresh httpx.AsyncClient
        url: Absolute URL to call
        method: HTTP method
        headers: Request headers
        body: JSON body (omitted when None)
        params: Query string parameters

    Returns:
        APICallResult with the response status and JSON body (None if empty)

    Raises:
        ValueError: If the response body is not valid JSON
        httpx.HTTPError: On transport failures
    """
    async with client_factory() as client:
        response = await client.request(
            method,
            url,
            headers=dict(headers or {}),
            json=body,
            params=dict(params) if params else None,
        )

    logger.debug(f"[call_api] {method} {url} -> {response.status_code}")

    data = None
    if response.content:
        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON decode failed on {response.text!r}: {e}") from e
    return APICallResult(code=response.status_code, data=data)


__all__ = [
    "APICallResult",
    "ClientFactory",
    "call_api",
]

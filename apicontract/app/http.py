"""
HTTP boundary adapters.

Convert Starlette requests into RawRequest and core Response records into
Starlette responses. Nothing here knows about API contracts.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from fastapi import Request as HTTPRequest
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.responses import Response as StarletteResponse

from apicontract.api.request import RawRequest, Response
from apicontract.api.schema import BODY, SchemaValidationError
from apicontract.api.signals import InvalidInputException

logger = logging.getLogger(__name__)

_PATH_PARAM = re.compile(r":([A-Za-z][A-Za-z0-9]*)")


def to_router_path(path: str) -> str:
    """Convert a `:param` path template into the router's `{param}` syntax."""
    return _PATH_PARAM.sub(r"{\1}", path)


def query_dict(request: HTTPRequest) -> dict[str, Any]:
    """Query parameters; repeated keys become lists."""
    query: dict[str, Any] = {}
    for key in request.query_params:
        values = request.query_params.getlist(key)
        query[key] = values if len(values) > 1 else values[0]
    return query


async def to_raw_request(request: HTTPRequest) -> RawRequest:
    """
    Build a RawRequest from an incoming HTTP request.

    Raises:
        InvalidInputException: If the body is not valid JSON or not valid text
    """
    raw_body = await request.body()
    body = None
    if raw_body:
        try:
            body = json.loads(raw_body)
        except json.JSONDecodeError as e:
            raise InvalidInputException(
                SchemaValidationError(BODY, f"body is not valid JSON: {e.msg}")
            ) from e
        except UnicodeDecodeError as e:
            raise InvalidInputException(
                SchemaValidationError(BODY, f"body is not valid JSON: {e.reason}")
            ) from e

    return RawRequest(
        method=request.method,
        path=request.url.path,
        headers=dict(request.headers),
        query=query_dict(request),
        path_params=dict(request.path_params),
        body=body,
    )


def to_http_response(response: Response) -> StarletteResponse:
    """Serialize a core Response."""
    body = response.body
    if body == "" or body is None:
        return StarletteResponse(status_code=response.status, headers=response.headers)
    if isinstance(body, str):
        return PlainTextResponse(body, status_code=response.status, headers=response.headers)
    return JSONResponse(
        jsonable_encoder(body),
        status_code=response.status,
        headers=response.headers,
    )


__all__ = [
    "query_dict",
    "to_http_response",
    "to_raw_request",
    "to_router_path",
]

"""
Request Handler Contract for apicontract.

An API subclass declares its contract with class attributes and implements
compute_response(). For every request the framework:

1. validates headers, query, path params and body against the definition
2. constructs exactly one handler instance
3. runs the business logic behind a single RequestDone interception point
4. classifies error signals (see classifier.py)
5. substitutes an empty body for a None return value
6. validates the success body against the schema of the resulting status

Example:
    class EchoAPI(API):
        PATH = "/echo"
        DESC = "Echo the input back"
        BODY = {"v": (int, 5)}
        RESPONSE = {"v": int}

        async def compute_response(self, req):
            return {"v": req.body.v}
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import urlencode

from pydantic import ValidationError

from apicontract.observability import JSONLogger, RequestLogger

from .classifier import classify_error
from .client import APICallResult, call_api
from .request import RawRequest, Reply, Request, Response
from .responses import NO_OUTPUT
from .schema import (
    BODY,
    HEADERS,
    PATH,
    QUERY,
    RESPONSE,
    Schema,
    SchemaValidationError,
    format_validation_error,
    validate_section,
)
from .signals import InvalidInputException, RequestDone, RequestError

if TYPE_CHECKING:
    from apicontract.app.dependencies import AppContext
    from apicontract.app.registrator import ComponentRegistrator
    from apicontract.config import Settings

    from .definition import APIDefinition

logger = logging.getLogger(__name__)


class ResponseContractError(Exception):
    """A handler produced a success body that violates its response schema."""

    http_code = 500


async def call_and_handle_request_done(
    reply: Reply,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
) -> Any:
    """
    Run func, turning a raised RequestDone into its response data.

    This is the only place RequestDone is caught.
    """
    try:
        return await func(*args)
    except RequestDone as done:
        reply.code(done.http_code)
        return done.resp_data


# =============================================================================
# API Base Class
# =============================================================================


class API(ABC):
    """
    Base class of every endpoint.

    One instance is constructed per request (never per retry attempt), so
    fields set on the instance live for the whole request.

    Attributes available to compute_response():
        app: Process-scoped collaborators (settings, unit of work, ...)
        req: Validated request
        reply: Response context (status code, headers, redirect)
        log: Structured logger bound to this request
        shared: Process-wide mutable store. Shared by all requests and not
            synchronized; handlers that use it own its consistency.
    """

    METHOD: ClassVar[str] = "POST"
    PATH: ClassVar[str | None] = None
    DESC: ClassVar[str | None] = None
    NAME: ClassVar[str | None] = None
    TAG: ClassVar[str | None] = None
    SDK_GROUP: ClassVar[str | None] = None

    HEADERS: ClassVar[Any] = None
    QS: ClassVar[Any] = None
    PATH_PARAMS: ClassVar[Any] = None
    BODY: ClassVar[Any] = None
    RESPONSE: ClassVar[Any] = NO_OUTPUT
    ERRORS: ClassVar[Any] = {}

    CORS_ORIGIN: ClassVar[str | None] = None
    CORS_HEADERS: ClassVar[tuple[str, ...] | None] = ("Content-Type",)

    ENABLE_PAGINATION: ClassVar[bool] = False
    LOG_REQUEST_BODY_ON_ERROR: ClassVar[bool] = False

    def __init__(
        self,
        definition: APIDefinition,
        app: AppContext,
        req: Request,
        reply: Reply,
    ):
        self.definition = definition
        self.app = app
        self.req = req
        self.reply = reply
        self.shared = app.shared
        self.log = JSONLogger(
            name=f"apicontract.api.{definition.name}",
            request_id=req.raw.request_id,
            extra_context={"api": definition.name},
        )
        if definition.cors is not None:
            definition.cors.apply(reply, app.settings)

    @classmethod
    def register(cls, registrator: ComponentRegistrator) -> None:
        registrator.register_api(cls)

    @classmethod
    async def setup(cls, app: AppContext) -> None:
        """Hook run once at application startup."""

    async def _compute_response(self) -> Any:
        return await self._call_and_handle_request_done(self.compute_response, self.req)

    async def _call_and_handle_request_done(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Any:
        return await call_and_handle_request_done(self.reply, func, *args)

    @abstractmethod
    async def compute_response(self, req: Request) -> Any:
        """
        Business logic of the API.

        Return the success body (None means an empty body), or raise a
        completion signal from any depth.
        """
        ...

    # Outbound calls

    def add_headers_to_forward(self, headers: dict[str, str]) -> dict[str, str]:
        """Copy the declared request headers into an outbound header dict."""
        for name in self.definition.forwarded_headers:
            value = self.req.raw.headers.get(name.lower())
            if value is not None:
                headers[name] = value
        return headers

    async def call_api(
        self,
        url: str,
        *,
        method: str = "POST",
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> APICallResult:
        """Call another API, forwarding this request's declared headers."""
        outbound = self.add_headers_to_forward(dict(headers or {}))
        return await call_api(
            self.app.http_client_factory,
            url,
            method=method,
            headers=outbound,
            body=body,
            params=params,
        )

    def redirect_to_web_app(
        self,
        scheme_and_host: str,
        path: str = "/",
        qparams: Mapping[str, Any] | None = None,
    ) -> None:
        """Redirect the caller to a web application."""
        settings = self.app.settings
        if settings.environment == "localhost":
            scheme_and_host = settings.localhost_origin
        query = f"?{urlencode(qparams)}" if qparams else ""
        self.reply.redirect(f"{scheme_and_host}{path}{query}")


# =============================================================================
# Request Lifecycle
# =============================================================================


async def handle_request(
    definition: APIDefinition,
    raw: RawRequest,
    app: AppContext,
    reply: Reply | None = None,
) -> Response:
    """
    Run one request through an API and produce its final response.

    Raises:
        InvalidInputException: Input failed validation
        RequestError: Declared error signals (rendered by the error handler)
        ResponseContractError: The success body violates its schema
    """
    reply = reply if reply is not None else Reply()
    RequestLogger(request_id=raw.request_id, api_name=definition.name).request_started(
        definition.method, definition.full_path
    )

    req = validate_request(definition, raw, app.settings)

    async def run() -> Any:
        api = definition.handler_cls(definition, app, req, reply)
        return await api._compute_response()

    try:
        data = await call_and_handle_request_done(reply, run)
    except RequestError as err:
        return classify_error(definition, err, app.settings, reply)

    if reply.redirect_url is not None:
        return Response(
            reply.status_code,
            "",
            {**reply.headers, "Location": reply.redirect_url},
        )

    return finalize_response(definition, reply, data)


def validate_request(definition: APIDefinition, raw: RawRequest, settings: Settings) -> Request:
    """Validate every declared input section of a raw request."""
    try:
        headers = None
        if definition.headers is not None:
            headers = validate_section(definition.headers, HEADERS, _header_keys(raw.headers))
        query = _validate_optional(definition.query, QUERY, raw.query)
        params = _validate_optional(definition.path_params, PATH, raw.path_params)
        body = raw.body
        if definition.body is not None:
            if body is None and definition.body.root_type == "object":
                body = {}
            body = validate_section(definition.body, BODY, body)
    except SchemaValidationError as e:
        raise InvalidInputException(e, settings) from e
    return Request(raw=raw, headers=headers, query=query, params=params, body=body)


def finalize_response(definition: APIDefinition, reply: Reply, data: Any) -> Response:
    """
    Default and validate the success body.

    Raises:
        ResponseContractError: If the body does not match the schema
            declared for the reply's status code
    """
    descriptor = definition.response
    if data is None:
        data = descriptor.empty_success_body()

    schema = descriptor.schema_for(reply.status_code)
    if schema is not None:
        data = _dump_response(definition, schema, reply.status_code, data)
    return Response(reply.status_code, data, dict(reply.headers))


def _dump_response(definition: APIDefinition, schema: Schema, status: int, data: Any) -> Any:
    try:
        return schema.dump(data)
    except ValidationError as e:
        message = format_validation_error(RESPONSE, e)
        logger.error(f"[{definition.name}] HTTP {status} response is invalid: {message}")
        raise ResponseContractError(
            f"{definition.api_name} HTTP {status} Response is invalid: {message}"
        ) from e


def _validate_optional(schema: Schema | None, section: str, raw: Any) -> Any:
    if schema is None:
        return None
    return validate_section(schema, section, raw)


def _header_keys(headers: Mapping[str, str]) -> dict[str, str]:
    """Header values keyed by both dash and underscore names."""
    keyed = dict(headers)
    for name, value in headers.items():
        keyed.setdefault(name.replace("-", "_"), value)
    return keyed


__all__ = [
    "API",
    "ResponseContractError",
    "call_and_handle_request_done",
    "finalize_response",
    "handle_request",
    "validate_request",
]

"""
API Definitions for apicontract.

An API class declares its contract with class attributes (METHOD, PATH,
BODY, RESPONSE, ERRORS, ...). At registration the class is compiled once
into an immutable APIDefinition record; request handling only ever reads
the record, never the class attributes.

Registration checks are fatal: a missing description, a bad path or a
misconfigured pagination response raises DefinitionError at startup.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .pagination import apply_pagination
from .responses import UNVALIDATED, ResponseDescriptor
from .schema import Schema, as_schema
from .signals import (
    BadRequestException,
    InternalFailureException,
    InvalidInputException,
    RequestDone,
    RequestError,
)

if TYPE_CHECKING:
    from apicontract.config import Settings

    from .handler import API
    from .request import Reply


class DefinitionError(Exception):
    """An API class declares an invalid contract."""


BASE_ERRORS: tuple[type[RequestError], ...] = (
    InternalFailureException,
    BadRequestException,
    InvalidInputException,
)

SDK_GROUPS = ("user", "admin", "service")


# =============================================================================
# CORS
# =============================================================================


@dataclass(frozen=True)
class CORSPolicy:
    """
    Cross-origin policy of one API.

    Attributes:
        origin: Value of Access-Control-Allow-Origin
        headers: Allowed request headers; empty means the header is omitted
    """

    origin: str
    headers: tuple[str, ...] = ("Content-Type",)

    def resolve_origin(self, settings: Settings) -> str:
        if settings.environment == "localhost" and self.origin not in ("*", "null"):
            return settings.localhost_origin
        return self.origin

    def header_values(self, settings: Settings) -> dict[str, str]:
        values = {"Access-Control-Allow-Origin": self.resolve_origin(settings)}
        if self.headers:
            values["Access-Control-Allow-Headers"] = ", ".join(self.headers)
        return values

    def apply(self, reply: Reply, settings: Settings) -> None:
        for name, value in self.header_values(settings).items():
            reply.header(name, value)


# =============================================================================
# API Definition
# =============================================================================


@dataclass(frozen=True)
class APIDefinition:
    """
    Immutable contract of one endpoint, compiled from an API class.

    The handler reads schemas, response descriptor and the declared error set
    from here for every request.
    """

    name: str
    api_name: str
    description: str
    method: str
    path: str
    full_path: str
    handler_cls: type[API]
    tag: str | None = None
    sdk_group: str | None = None
    headers: Schema | None = None
    query: Schema | None = None
    path_params: Schema | None = None
    body: Schema | None = None
    response: ResponseDescriptor = field(default_factory=lambda: ResponseDescriptor(None))
    errors: Mapping[str, type[RequestError]] = field(default_factory=dict)
    cors: CORSPolicy | None = None
    paginated: bool = False
    log_request_body_on_error: bool = False

    @property
    def forwarded_headers(self) -> list[str]:
        """Header names declared by the API, forwarded on outbound calls."""
        return self.headers.field_names if self.headers else []

    def declares(self, err: BaseException) -> bool:
        return type(err) in self.errors.values()


def derive_api_name(cls_name: str) -> str:
    """
    De-camel-case a class name and drop a trailing API.

    Example:
        derive_api_name("CreateUserAPI")  # -> "Create User"
    """
    words = re.findall(r"[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]?[a-z]+|[A-Z]+|\d+", cls_name)
    if words and words[-1].upper() == "API":
        words = words[:-1]
    return " ".join(words)


def compile_definition(api_cls: type[API], service: str) -> APIDefinition:
    """
    Compile an API class into its APIDefinition.

    Args:
        api_cls: API subclass to compile
        service: Service name; routes live under /<service><PATH>

    Raises:
        DefinitionError: If the class declares an invalid contract
    """
    cls_name = api_cls.__name__
    if not api_cls.DESC:
        raise DefinitionError("description is required")
    path = api_cls.PATH
    if not path:
        raise DefinitionError("path is required")
    if not path.startswith("/"):
        raise DefinitionError(f'path must start with "/": {path}')
    if "_" in path:
        raise DefinitionError(f"path must not contain underscores: {path}")
    if api_cls.SDK_GROUP is not None and api_cls.SDK_GROUP not in SDK_GROUPS:
        raise DefinitionError(f"SDK_GROUP must be one of {SDK_GROUPS}: {api_cls.SDK_GROUP}")

    method = api_cls.METHOD.upper()
    headers = as_schema(api_cls.HEADERS, f"{cls_name}Headers")
    query = as_schema(api_cls.QS, f"{cls_name}Query")
    path_params = as_schema(api_cls.PATH_PARAMS, f"{cls_name}PathParams")
    body = as_schema(api_cls.BODY, f"{cls_name}Body")
    success = _success_signal(api_cls)

    if api_cls.ENABLE_PAGINATION:
        try:
            query, paged_response = apply_pagination(
                cls_name, query, success.schema() if success else None
            )
        except ValueError as e:
            raise DefinitionError(str(e)) from e
        success = success.variant(success.__name__, schema=paged_response)

    errors = _error_set(api_cls.ERRORS)
    schemas: dict[int, Schema] = {}
    if success is not None:
        schemas[success.STATUS] = success.schema()
    for err_cls in errors.values():
        if err_cls.STATUS is not None:
            schemas.setdefault(err_cls.STATUS, err_cls.response_schema())

    cors = None
    if api_cls.CORS_ORIGIN:
        cors = CORSPolicy(api_cls.CORS_ORIGIN, tuple(api_cls.CORS_HEADERS or ()))

    return APIDefinition(
        name=cls_name,
        api_name=api_cls.NAME or derive_api_name(cls_name),
        description=api_cls.DESC,
        method=method,
        path=path,
        full_path=f"/{service}{path}",
        handler_cls=api_cls,
        tag=api_cls.TAG,
        sdk_group=api_cls.SDK_GROUP,
        headers=headers,
        query=query,
        path_params=path_params,
        body=body,
        response=ResponseDescriptor(success, schemas),
        errors=errors,
        cors=cors,
        paginated=bool(api_cls.ENABLE_PAGINATION),
        log_request_body_on_error=bool(api_cls.LOG_REQUEST_BODY_ON_ERROR),
    )


def _success_signal(api_cls: type[API]) -> type[RequestDone] | None:
    response = api_cls.RESPONSE
    if response is UNVALIDATED:
        return None
    if isinstance(response, type) and issubclass(response, RequestDone):
        return response
    return RequestDone.variant(f"{api_cls.__name__}Response", status=200, schema=response)


def _error_set(declared: Any) -> dict[str, type[RequestError]]:
    errors = {err.__name__: err for err in BASE_ERRORS}
    items: Iterable[Any] = declared.values() if isinstance(declared, Mapping) else declared or ()
    for err in items:
        if not (isinstance(err, type) and issubclass(err, RequestError)):
            raise DefinitionError(f"ERRORS must contain RequestError subclasses, got {err!r}")
        errors[err.__name__] = err
    return errors


__all__ = [
    "BASE_ERRORS",
    "APIDefinition",
    "CORSPolicy",
    "DefinitionError",
    "compile_definition",
    "derive_api_name",
]

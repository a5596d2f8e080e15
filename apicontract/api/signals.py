"""
Completion signals for apicontract.

Completion signals are exceptions raised to finish request handling
immediately, from any depth of the call stack. The API catches them at a
single point and turns them into the HTTP response:

- RequestDone (status < 300): the signal's data becomes the response body
- RequestError (status >= 300): body is {"code", "message", "data"}
- RedirectException (300 <= status < 400): empty body + Location header

Signal payloads are validated when the signal is constructed, so a handler
bug surfaces before any data is sent. A malformed signal raises
SignalContractError, which is never retried and never rendered as a normal
error response.

Example:
    async def compute_response(self, req):
        user = await self.load_user(req.body.user_id)  # may raise NotFoundException
        raise RequestDone({"id": user.id}, code=201)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ValidationError

from .responses import NO_OUTPUT
from .schema import Schema, SchemaValidationError, as_schema, format_validation_error

if TYPE_CHECKING:
    from apicontract.config import Settings

logger = logging.getLogger(__name__)


class SignalContractError(AssertionError):
    """A completion signal was constructed in violation of its contract."""


class ErrorResponse(BaseModel):
    """Body of every error response."""

    code: str
    message: str | None = None
    data: dict[str, Any] = {}


# =============================================================================
# Base Signal
# =============================================================================


class CompletionSignal(Exception):
    """
    Base of all completion signals. Not raised directly.

    Subclasses set STATUS (default HTTP status) and SCHEMA (schema of the
    data carried by the signal).
    """

    STATUS: ClassVar[int | None] = None
    SCHEMA: ClassVar[Any] = NO_OUTPUT

    @classmethod
    def schema(cls) -> Schema:
        """Schema for this signal's data, built once per class."""
        cached = cls.__dict__.get("_cached_schema")
        if cached is None:
            cached = as_schema(cls.SCHEMA, f"{cls.__name__}Data")
            cls._cached_schema = cached
        return cached

    def __init__(self, message: str = "", data: Any = None, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.http_code = code if code is not None else type(self).STATUS
        if self.http_code is None:
            raise SignalContractError(f"{type(self).__name__}: status must be defined")
        if type(self).SCHEMA is None:
            raise SignalContractError(f"{type(self).__name__}: schema must be defined")
        try:
            type(self).schema().validate(data)
        except ValidationError as e:
            raise SignalContractError(
                f"data input to {type(self).__name__} is invalid: "
                f"{format_validation_error('data', e)}"
            ) from e
        self.data = data

    @property
    def resp_data(self) -> Any:
        return self.data

    @classmethod
    def variant(
        cls,
        name: str,
        *,
        status: int | None = None,
        schema: Any = None,
    ) -> type:
        """
        Build a new signal kind with its own status and/or schema.

        Example:
            Created = RequestDone.variant("Created", status=201, schema={"id": str})
            raise Created({"id": "abc"})
        """
        attrs: dict[str, Any] = {"__module__": cls.__module__, "__qualname__": name}
        if status is not None:
            attrs["STATUS"] = status
        if schema is not None:
            attrs["SCHEMA"] = schema
        return type(name, (cls,), attrs)


# =============================================================================
# Success Signals
# =============================================================================


class RequestDone(CompletionSignal):
    """
    Finish the request successfully with the given data.

    The status defaults to STATUS and must be below 300.
    """

    STATUS: ClassVar[int | None] = 200
    SCHEMA: ClassVar[Any] = dict[str, Any] | None

    def __init__(self, data: Any = None, code: int | None = None):
        super().__init__("", data, code)
        if self.http_code >= 300:
            raise SignalContractError("Status code must be less than 300")


class RequestOkay(RequestDone):
    """Finish the request with HTTP 200."""

    STATUS: ClassVar[int | None] = 200


# =============================================================================
# Error Signals
# =============================================================================


class RequestError(CompletionSignal):
    """
    Finish the request with an error response.

    Args:
        message: Human-readable error message
        data: Additional JSON data for the caller
        code: Status override; must be 300 or above
    """

    SCHEMA: ClassVar[Any] = dict[str, Any]

    def __init__(self, message: str = "", data: Any = None, code: int | None = None):
        super().__init__(message, {} if data is None else data, code)
        if self.http_code < 300:
            raise SignalContractError("Status code must be at least 300")

    @classmethod
    def response_schema(cls) -> Schema:
        """Schema of the error response body (shared by all error kinds)."""
        return _ERROR_RESPONSE_SCHEMA

    @property
    def resp_data(self) -> dict[str, Any]:
        return {
            "code": type(self).__name__,
            "message": self.message,
            "data": self.data,
        }


_ERROR_RESPONSE_SCHEMA = Schema(ErrorResponse, "ErrorResponse")


class RedirectException(RequestError):
    """
    Redirect the caller to another URL.

    Modeled as an error so generated SDKs treat it like any other
    non-success response.
    """

    STATUS: ClassVar[int | None] = 302
    SCHEMA: ClassVar[Any] = NO_OUTPUT

    def __init__(self, url: str, code: int | None = None):
        super().__init__("", "", code)
        if self.http_code >= 400:
            raise SignalContractError("Status code must be less than 400")
        if not isinstance(url, str) or not url:
            raise SignalContractError("Redirect URL must be a non-empty string")
        self.url = url


class BadRequestException(RequestError):
    """The request failed because of the caller."""

    STATUS: ClassVar[int | None] = 400


class InvalidInputException(BadRequestException):
    """Wraps a request validation failure."""

    STATUS: ClassVar[int | None] = 400

    ERROR_PREFIXES: ClassVar[dict[str, str]] = {
        "headers": "Header Validation Failure",
        "body": "Body Validation Failure",
        "query": "Query Validation Failure",
        "path": "Path Validation Failure",
    }

    def __init__(self, schema_error: SchemaValidationError, settings: Settings | None = None):
        prefix = self.ERROR_PREFIXES.get(schema_error.section, "Unknown Validation Failure")
        super().__init__(f"{prefix}: {schema_error.message}")
        self.section = schema_error.section
        if settings is not None and settings.logging.report_all_errors:
            for err in schema_error.errors:
                logger.info(f"{prefix}: {err}")


class UnauthorizedException(RequestError):
    """The caller is not authenticated, e.g. invalid credentials."""

    STATUS: ClassVar[int | None] = 401

    def __init__(self, message: str = "access denied"):
        super().__init__(message)


class ForbiddenException(RequestError):
    """The caller is authenticated but may not access the resource."""

    STATUS: ClassVar[int | None] = 403

    def __init__(self, message: str = "access denied"):
        super().__init__(message)


class NotFoundException(RequestError):
    """The resource does not exist, or should be hidden."""

    STATUS: ClassVar[int | None] = 404

    def __init__(self) -> None:
        super().__init__("Not found")


class InternalFailureException(RequestError):
    """The request failed because of a server bug."""

    STATUS: ClassVar[int | None] = 500


class ServiceUnavailableException(RequestError):
    """The server cannot serve the request right now (timeouts, outages)."""

    STATUS: ClassVar[int | None] = 503


__all__ = [
    "BadRequestException",
    "CompletionSignal",
    "ErrorResponse",
    "ForbiddenException",
    "InternalFailureException",
    "InvalidInputException",
    "NotFoundException",
    "RedirectException",
    "RequestDone",
    "RequestError",
    "RequestOkay",
    "ServiceUnavailableException",
    "SignalContractError",
    "UnauthorizedException",
]

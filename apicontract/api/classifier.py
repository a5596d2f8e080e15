"""
Error Classifier & Response Finalizer.

classify_error() enforces the declared error contract of an API: an error
signal whose type the API did not declare is "untracked". Outside
production that is a bug in the API and is escalated; in production it is
logged and down-cast to a generic declared error of the same status family,
so callers only ever observe documented errors.

render_error() is the top-level handler for anything that escapes the
request lifecycle. It always produces a response.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from apicontract.observability import JSONLogger, RequestLogger

from .request import RawRequest, Reply, Response
from .signals import (
    BadRequestException,
    CompletionSignal,
    InternalFailureException,
    RedirectException,
    RequestError,
)

if TYPE_CHECKING:
    from apicontract.config import Settings

    from .definition import APIDefinition

logger = logging.getLogger(__name__)

INTERNAL_FAILURE_MESSAGE = "Internal failure"


class UntrackedErrorException(Exception):
    """An API raised an error signal it did not declare."""

    http_code = 500

    def __init__(self, api_name: str, error_name: str):
        self.api_name = api_name
        self.error_name = error_name
        super().__init__(f"API {api_name} emitted untracked error {error_name}")


def is_untracked(definition: APIDefinition, err: BaseException) -> bool:
    return (
        isinstance(err, RequestError)
        and type(err) not in (RequestError, RedirectException)
        and not definition.declares(err)
    )


def classify_error(
    definition: APIDefinition,
    err: RequestError,
    settings: Settings,
    reply: Reply | None = None,
) -> Response:
    """
    Classify an error signal raised by an API.

    Returns:
        Redirect response for a RedirectException

    Raises:
        UntrackedErrorException: Undeclared error outside production
        InternalFailureException | BadRequestException: Undeclared error in
            production, carrying the original message, data and status
        RequestError: The original signal when it is declared
    """
    if is_untracked(definition, err):
        escalated = UntrackedErrorException(definition.name, type(err).__name__)
        RequestLogger(api_name=definition.name).untracked_error(
            type(err).__name__, err.http_code, settings.is_production
        )
        if not settings.is_production:
            raise escalated from err
        logger.error(str(escalated))
        if err.http_code >= 500:
            raise InternalFailureException(err.message, err.data, err.http_code) from err
        if err.http_code >= 400:
            raise BadRequestException(err.message, err.data, err.http_code) from err

    if isinstance(err, RedirectException):
        headers = dict(reply.headers) if reply is not None else {}
        headers["Location"] = err.url
        return Response(err.http_code, "", headers)
    raise err


# =============================================================================
# Top-Level Error Rendering
# =============================================================================


def render_error(
    err: BaseException,
    settings: Settings,
    definition: APIDefinition | None = None,
    raw: RawRequest | None = None,
    headers: dict[str, str] | None = None,
) -> Response:
    """
    Turn any error that escaped request handling into a response.

    Signals render their own body. Outside production anything else renders
    as {"code": <type name>, "message": <message>}, plus "detail" and "stack"
    when report_error_detail is enabled. In production it renders as a
    generic InternalFailureException; the real type stays in the log.
    """
    status = getattr(err, "http_code", None) or 500
    request_id = raw.request_id if raw is not None else str(uuid4())

    if isinstance(err, CompletionSignal):
        body: Any = err.resp_data
    elif settings.is_production:
        body = InternalFailureException(INTERNAL_FAILURE_MESSAGE).resp_data
    else:
        body = {"code": type(err).__name__, "message": str(err) or "empty error message"}
        if settings.logging.report_error_detail:
            body["detail"] = body["message"]
            body["stack"] = "".join(traceback.format_exception(err))

    log = JSONLogger(name="apicontract.errors", request_id=request_id)
    context: dict[str, Any] = {
        "status": status,
        "error": type(err).__name__,
        "error_message": str(err),
    }
    if definition is not None:
        log = log.with_context(api=definition.name)
        if definition.log_request_body_on_error and raw is not None:
            context["body"] = raw.body
    if raw is not None:
        context["method"] = raw.method
        context["path"] = raw.path

    if status >= 500:
        context["stack"] = "".join(traceback.format_exception(err))
        log.error("Request failed", **context)
    else:
        log.info("Request failed", **context)

    return Response(status, body, dict(headers or {}))


__all__ = [
    "UntrackedErrorException",
    "classify_error",
    "is_untracked",
    "render_error",
]

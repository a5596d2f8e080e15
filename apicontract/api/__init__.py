"""
apicontract API layer.

Declarative endpoint contracts, completion signals and the request
lifecycle.
"""

from .classifier import UntrackedErrorException, classify_error, render_error
from .client import APICallResult, call_api
from .definition import APIDefinition, CORSPolicy, DefinitionError, compile_definition
from .handler import API, ResponseContractError, handle_request
from .request import RawRequest, Reply, Request, Response
from .responses import NO_OUTPUT, UNVALIDATED, ResponseDescriptor
from .schema import Schema, SchemaValidationError, as_schema
from .signals import (
    BadRequestException,
    ErrorResponse,
    ForbiddenException,
    InternalFailureException,
    InvalidInputException,
    NotFoundException,
    RedirectException,
    RequestDone,
    RequestError,
    RequestOkay,
    ServiceUnavailableException,
    SignalContractError,
    UnauthorizedException,
)
from .tx_api import TxAPI

EXCEPTIONS = {
    cls.__name__: cls
    for cls in (
        BadRequestException,
        ForbiddenException,
        InternalFailureException,
        InvalidInputException,
        NotFoundException,
        RedirectException,
        RequestDone,
        RequestError,
        RequestOkay,
        ServiceUnavailableException,
        UnauthorizedException,
    )
}

__all__ = [
    "API",
    "EXCEPTIONS",
    "NO_OUTPUT",
    "UNVALIDATED",
    "APICallResult",
    "APIDefinition",
    "BadRequestException",
    "CORSPolicy",
    "DefinitionError",
    "ErrorResponse",
    "ForbiddenException",
    "InternalFailureException",
    "InvalidInputException",
    "NotFoundException",
    "RawRequest",
    "RedirectException",
    "Reply",
    "Request",
    "RequestDone",
    "RequestError",
    "RequestOkay",
    "Response",
    "ResponseContractError",
    "ResponseDescriptor",
    "Schema",
    "SchemaValidationError",
    "ServiceUnavailableException",
    "SignalContractError",
    "TxAPI",
    "UnauthorizedException",
    "UntrackedErrorException",
    "as_schema",
    "call_api",
    "classify_error",
    "compile_definition",
    "handle_request",
    "render_error",
]

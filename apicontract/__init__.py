"""
apicontract - declarative HTTP API contracts for FastAPI services.

Each endpoint is a class declaring its method, path, input schemas,
response schema and error set. The framework validates input, runs the
implementation, and turns either its return value or a raised completion
signal into a validated response:

- **Completion Signals**: raise RequestDone / RequestError from any depth
- **Declared Errors**: undeclared error types never reach callers in production
- **Transactional APIs**: TxAPI runs business logic in a retryable unit of work
- **Pagination**: one flag adds nextToken/amount to an API's contract

Quick Start:
    >>> from apicontract import API, make_app
    >>>
    >>> class EchoAPI(API):
    ...     PATH = "/echo"
    ...     DESC = "Echo the input back"
    ...     BODY = {"v": (int, 5)}
    ...     RESPONSE = {"v": int}
    ...
    ...     async def compute_response(self, req):
    ...         return {"v": req.body.v}
    >>>
    >>> app = make_app("demo", [EchoAPI])
"""

__version__ = "0.1.0"

# Core exports for convenient imports
from apicontract.api import (
    API,
    NO_OUTPUT,
    UNVALIDATED,
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
    TxAPI,
    UnauthorizedException,
)
from apicontract.app import ComponentRegistrator, make_app
from apicontract.config import Settings

__all__ = [
    # Version info
    "__version__",
    # Handlers
    "API",
    "TxAPI",
    "NO_OUTPUT",
    "UNVALIDATED",
    # Signals
    "BadRequestException",
    "ForbiddenException",
    "InternalFailureException",
    "InvalidInputException",
    "NotFoundException",
    "RedirectException",
    "RequestDone",
    "RequestError",
    "RequestOkay",
    "ServiceUnavailableException",
    "UnauthorizedException",
    # Service
    "ComponentRegistrator",
    "Settings",
    "make_app",
]

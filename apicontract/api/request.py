"""
Request and reply contexts for apicontract.

RawRequest is what the HTTP boundary hands to the core. Request carries the
validated input and, only while a transactional attempt runs, the attempt's
transaction context. Reply collects the status code, headers and redirect
target produced by handler code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

if TYPE_CHECKING:
    from apicontract.transaction import TransactionContext


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _request_id() -> str:
    return str(uuid4())


@dataclass
class RawRequest:
    """
    Unvalidated request as received from the HTTP boundary.

    Header names are lowercased on construction. The body is already
    JSON-decoded (None when the request had no body).
    """

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    path_params: dict[str, str] = field(default_factory=dict)
    body: Any = None
    request_id: str = field(default_factory=_request_id)
    received_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the request was received."""
        delta = datetime.now(UTC) - self.received_at
        return delta.total_seconds() * 1000


@dataclass
class Request:
    """
    Validated input of one request.

    Attributes:
        raw: The request as received
        headers, query, params, body: Validated sections (None if undeclared)
        tx: Transaction context of the running attempt, None outside attempts
    """

    raw: RawRequest
    headers: Any = None
    query: Any = None
    params: Any = None
    body: Any = None
    tx: TransactionContext | None = None


@dataclass
class Reply:
    """Mutable response context written by handler code."""

    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    redirect_url: str | None = None

    def code(self, status_code: int) -> Reply:
        self.status_code = status_code
        return self

    def header(self, name: str, value: str) -> Reply:
        self.headers[name] = value
        return self

    def redirect(self, url: str, status_code: int = 302) -> Reply:
        self.redirect_url = url
        self.status_code = status_code
        return self

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400


@dataclass(frozen=True)
class Response:
    """Final (status, body, headers) produced for one request."""

    status: int
    body: Any = ""
    headers: dict[str, str] = field(default_factory=dict)


__all__ = [
    "RawRequest",
    "Reply",
    "Request",
    "Response",
]

"""
Response declarations and the per-API response descriptor.

An API's RESPONSE may be:
- a schema declaration (see schema.py): 200 responses are validated against it
- a RequestDone subclass: its STATUS and SCHEMA describe the success response
- NO_OUTPUT (the default): success responses carry an empty body
- UNVALIDATED: success responses are sent as-is
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import Field

if TYPE_CHECKING:
    from .schema import Schema
    from .signals import RequestDone


NO_OUTPUT = Annotated[str, Field(max_length=0)]


class _Unvalidated:
    """Marker for APIs whose success output is not validated."""

    def __repr__(self) -> str:
        return "UNVALIDATED"


UNVALIDATED = _Unvalidated()

_EMPTY_VALUES: dict[str, Any] = {
    "string": "",
    "object": {},
    "array": [],
}


@dataclass(frozen=True)
class ResponseDescriptor:
    """
    Maps HTTP status codes to response schemas for one API.

    Built once when the API definition is compiled.

    Attributes:
        success: RequestDone subclass describing the success response,
            or None when the success output is unvalidated
        schemas: status code -> Schema (success entry + one per declared error)
    """

    success: type[RequestDone] | None
    schemas: Mapping[int, Schema] = field(default_factory=dict)

    @property
    def success_status(self) -> int | None:
        return self.success.STATUS if self.success else None

    @property
    def success_schema(self) -> Schema | None:
        return self.success.schema() if self.success else None

    def schema_for(self, status: int) -> Schema | None:
        return self.schemas.get(status)

    def empty_success_body(self) -> Any:
        """Empty value matching the root type of the success schema."""
        schema = self.success_schema
        if schema is None:
            return ""
        empty = _EMPTY_VALUES.get(schema.root_type or "")
        # fresh containers for every request
        return type(empty)() if empty is not None else None


__all__ = [
    "NO_OUTPUT",
    "UNVALIDATED",
    "ResponseDescriptor",
]

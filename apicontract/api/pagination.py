"""
Pagination support for API definitions.

A paginated API returns exactly one array-valued field per page. The query
gains a continuation cursor (nextToken) and a bounded page size (amount);
the response echoes nextToken, which is absent on the last page.
"""

from __future__ import annotations

from pydantic import Field

from .schema import Schema

NEXT_TOKEN = "nextToken"
AMOUNT = "amount"

DEFAULT_AMOUNT = 100
MAX_AMOUNT = 1000


def apply_pagination(
    api_name: str,
    query: Schema | None,
    response: Schema | None,
) -> tuple[Schema, Schema]:
    """
    Add pagination fields to an API's query and response schemas.

    Args:
        api_name: Name used for the generated models
        query: Declared query schema (may be None)
        response: Declared success response schema

    Returns:
        (paginated query schema, paginated response schema)

    Raises:
        ValueError: If the response cannot be paginated, or the query
            already uses a reserved field
    """
    if response is None:
        raise ValueError("pagination requires a response schema")
    fields = response.field_names
    if NEXT_TOKEN in fields:
        raise ValueError(f"{NEXT_TOKEN} is reserved for ENABLE_PAGINATION")
    if len(fields) != 1:
        raise ValueError("paginated responses must have exactly one field")
    if not response.field_is_array(fields[0]):
        raise ValueError(f"paginated response field {fields[0]} must be an array")

    if query is not None:
        for name in (NEXT_TOKEN, AMOUNT):
            if name in query.field_names:
                raise ValueError(f"{name} is reserved for ENABLE_PAGINATION")

    paged_response = response.extend(
        f"{api_name}Page",
        nextToken=(
            str | None,
            Field(None, description="Token for the next page; absent on the last page"),
        ),
    )
    page_fields = {
        NEXT_TOKEN: (
            str | None,
            Field(None, description="Continuation token returned by the previous page"),
        ),
        AMOUNT: (
            int,
            Field(DEFAULT_AMOUNT, ge=1, le=MAX_AMOUNT, description="Maximum items per page"),
        ),
    }
    if query is None:
        paged_query = Schema(dict, "empty").extend(f"{api_name}PageQuery", **page_fields)
    else:
        paged_query = query.extend(f"{api_name}PageQuery", **page_fields)
    return paged_query, paged_response


__all__ = [
    "AMOUNT",
    "DEFAULT_AMOUNT",
    "MAX_AMOUNT",
    "NEXT_TOKEN",
    "apply_pagination",
]

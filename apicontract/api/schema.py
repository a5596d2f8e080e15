"""
Schema layer for apicontract.

Every schema an API declares (headers, query, path params, body, response,
signal payloads) is normalized into a Schema, a thin wrapper around a
pydantic TypeAdapter. The rest of the framework only talks to Schema, so the
validator stays an opaque collaborator:

- validate(value): validated/normalized value, or pydantic ValidationError
- dump(value): JSON-ready output for a response body
- root_type: JSON type of the schema root ("object", "array", "string", ...)

Schemas may be declared as:
- a pydantic BaseModel subclass
- any type pydantic understands (str, list[str], dict[str, Any], ...)
- a mapping of field name -> type, or field name -> (type, default)

Example:
    BODY = {"v": (int, 5)}              # optional int, defaults to 5
    RESPONSE = {"items": list[str]}     # required list of strings
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, create_model
from pydantic.fields import FieldInfo

# Section tags used in validation failures
HEADERS = "headers"
QUERY = "query"
PATH = "path"
BODY = "body"
RESPONSE = "response"


class SchemaValidationError(Exception):
    """
    Structured validation failure.

    Attributes:
        section: Which part of the exchange failed (headers/query/path/body/...)
        message: Readable description of the first failure
        errors: Raw error list from the validator
    """

    def __init__(
        self,
        section: str,
        message: str,
        errors: list[dict[str, Any]] | None = None,
    ):
        self.section = section
        self.message = message
        self.errors = errors or []
        super().__init__(f"{section}: {message}")


class Schema:
    """
    Opaque validator contract around a pydantic TypeAdapter.

    Built once per declaration and reused for every request.
    """

    def __init__(self, type_: Any, name: str | None = None):
        self.type = type_
        self.name = name or getattr(type_, "__name__", repr(type_))
        self._adapter: TypeAdapter[Any] = TypeAdapter(type_)
        self._json_schema: dict[str, Any] | None = None

    @property
    def is_model(self) -> bool:
        return isinstance(self.type, type) and issubclass(self.type, BaseModel)

    def validate(self, value: Any) -> Any:
        """Validate a raw value. Raises pydantic.ValidationError."""
        return self._adapter.validate_python(value)

    def dump(self, value: Any) -> Any:
        """
        Validate a value and convert it into JSON-ready data.

        Fields the value never set (optional fields left out) stay absent
        from the output rather than turning into nulls.
        """
        validated = self.validate(value)
        return self._adapter.dump_python(
            validated, mode="json", by_alias=True, exclude_unset=True
        )

    def json_schema(self) -> dict[str, Any]:
        if self._json_schema is None:
            self._json_schema = self._adapter.json_schema()
        return self._json_schema

    @property
    def root_type(self) -> str | None:
        return _resolve_type(self.json_schema())

    @property
    def field_names(self) -> list[str]:
        """Top-level field names (validation aliases where declared)."""
        if not self.is_model:
            return []
        return [info.alias or name for name, info in self.type.model_fields.items()]

    def field_is_array(self, name: str) -> bool:
        properties = self.json_schema().get("properties", {})
        prop = properties.get(name)
        if prop is None:
            return False
        return _resolve_type(prop) == "array"

    def extend(self, name: str, **fields: Any) -> Schema:
        """Return a new object schema with extra fields added."""
        definitions = _field_definitions(fields)
        if self.is_model:
            model = create_model(name, __base__=self.type, **definitions)
        else:
            model = create_model(name, __config__=_MAPPING_CONFIG, **definitions)
        return Schema(model, name)

    def __repr__(self) -> str:
        return f"Schema({self.name})"


# Models built from mappings ignore unknown keys and accept field names as
# well as aliases.
_MAPPING_CONFIG = ConfigDict(extra="ignore", populate_by_name=True)


def as_schema(value: Any, name: str) -> Schema | None:
    """
    Normalize a schema declaration into a Schema.

    Args:
        value: None, a Schema, a model class, a type, or a mapping of fields
        name: Name used for models generated from mappings

    Returns:
        Schema, or None if nothing was declared
    """
    if value is None:
        return None
    if isinstance(value, Schema):
        return value
    if isinstance(value, Mapping):
        model = create_model(name, __config__=_MAPPING_CONFIG, **_field_definitions(value))
        return Schema(model, name)
    return Schema(value, name)


def validate_section(schema: Schema, section: str, raw: Any) -> Any:
    """
    Validate one section of a request (or a response body).

    Raises:
        SchemaValidationError: with the section tag and a readable message
    """
    try:
        return schema.validate(raw)
    except ValidationError as e:
        raise SchemaValidationError(
            section, format_validation_error(section, e), e.errors()
        ) from e


def format_validation_error(section: str, error: ValidationError) -> str:
    """Readable message for the first error, e.g. 'body.v Input should be ...'."""
    errors = error.errors()
    if not errors:
        return f"{section} is invalid"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    prefix = f"{section}.{location}" if location else section
    return f"{prefix} {first.get('msg', 'is invalid')}"


# =============================================================================
# Helpers
# =============================================================================


def _field_definitions(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Turn {name: type | (type, default)} into create_model() definitions.

    Names that are not identifiers (e.g. header names like "x-app") become
    aliases of a sanitized attribute name.
    """
    definitions: dict[str, Any] = {}
    for key, spec in fields.items():
        if isinstance(spec, tuple):
            annotation, default = spec
        else:
            annotation, default = spec, ...

        if key.isidentifier():
            definitions[key] = (annotation, default)
            continue

        attr = re.sub(r"\W", "_", key)
        if isinstance(default, FieldInfo):
            raise ValueError(
                f"field {key!r} is not an identifier; declare it on a model with "
                f"Field(alias={key!r}) instead"
            )
        definitions[attr] = (annotation, Field(default, alias=key))
    return definitions


def _resolve_type(schema: dict[str, Any]) -> str | None:
    """JSON type of a (sub)schema, looking through Optional unions."""
    if "type" in schema:
        return schema["type"]
    for option in schema.get("anyOf", ()):
        option_type = option.get("type")
        if option_type and option_type != "null":
            return option_type
        if "$ref" in option:
            return "object"
    if "$ref" in schema:
        return "object"
    return None


__all__ = [
    "BODY",
    "HEADERS",
    "PATH",
    "QUERY",
    "RESPONSE",
    "Schema",
    "SchemaValidationError",
    "as_schema",
    "format_validation_error",
    "validate_section",
]

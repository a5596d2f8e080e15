"""
Tests for the schema layer.
"""

import pytest
from pydantic import BaseModel, ValidationError

from apicontract.api.responses import NO_OUTPUT, UNVALIDATED, ResponseDescriptor
from apicontract.api.schema import (
    Schema,
    SchemaValidationError,
    as_schema,
    validate_section,
)
from apicontract.api.signals import RequestDone


class Item(BaseModel):
    name: str
    tags: list[str] = []


# =============================================================================
# as_schema
# =============================================================================


class TestAsSchema:
    """Tests for normalizing schema declarations."""

    def test_none(self):
        assert as_schema(None, "Nothing") is None

    def test_schema_passes_through(self):
        schema = Schema(int)
        assert as_schema(schema, "X") is schema

    def test_model(self):
        schema = as_schema(Item, "Item")
        assert schema.is_model
        assert schema.validate({"name": "a"}).name == "a"

    def test_mapping_with_defaults(self):
        schema = as_schema({"v": (int, 5), "w": str}, "Body")
        value = schema.validate({"w": "x"})
        assert value.v == 5
        assert value.w == "x"

    def test_mapping_missing_required_field(self):
        schema = as_schema({"w": str}, "Body")
        with pytest.raises(ValidationError):
            schema.validate({})

    def test_mapping_with_non_identifier_keys(self):
        schema = as_schema({"x-token": str}, "Headers")
        value = schema.validate({"x-token": "secret"})
        assert value.x_token == "secret"
        assert schema.field_names == ["x-token"]

    def test_plain_type(self):
        schema = as_schema(list[int], "Numbers")
        assert schema.validate(["1", 2]) == [1, 2]
        assert schema.root_type == "array"


class TestSchema:
    """Tests for Schema operations."""

    def test_root_types(self):
        assert as_schema({"a": int}, "A").root_type == "object"
        assert Schema(NO_OUTPUT).root_type == "string"
        assert Schema(list[str]).root_type == "array"
        assert Schema(dict | None).root_type == "object"

    def test_dump_omits_unset_optional_fields(self):
        schema = as_schema({"a": int, "c": (int | None, None)}, "Resp")
        assert schema.dump({"a": 1}) == {"a": 1}
        assert schema.dump({"a": 1, "c": 3}) == {"a": 1, "c": 3}

    def test_dump_drops_unknown_fields(self):
        schema = as_schema({"a": int}, "Resp")
        assert schema.dump({"a": 1, "d": 4}) == {"a": 1}

    def test_dump_validates(self):
        schema = as_schema({"a": int}, "Resp")
        with pytest.raises(ValidationError):
            schema.dump({"a": "not a number"})

    def test_field_is_array(self):
        schema = as_schema(Item, "Item")
        assert schema.field_is_array("tags")
        assert not schema.field_is_array("name")
        assert not schema.field_is_array("missing")

    def test_extend_keeps_existing_fields(self):
        schema = as_schema({"items": list[str]}, "Page")
        extended = schema.extend("PageWithCursor", cursor=(str | None, None))
        assert extended.field_names == ["items", "cursor"]
        assert extended.dump({"items": ["a"]}) == {"items": ["a"]}


class TestValidateSection:
    """Tests for section-tagged validation failures."""

    def test_returns_validated_value(self):
        schema = as_schema({"n": int}, "Q")
        assert validate_section(schema, "query", {"n": "3"}).n == 3

    def test_failure_carries_section_and_location(self):
        schema = as_schema({"n": int}, "Q")
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_section(schema, "query", {"n": "three"})

        err = exc_info.value
        assert err.section == "query"
        assert err.message.startswith("query.n ")
        assert err.errors[0]["loc"] == ("n",)


# =============================================================================
# Response Descriptor
# =============================================================================


class TestResponseDescriptor:
    """Tests for empty success bodies."""

    def _descriptor(self, schema):
        success = RequestDone.variant("Resp", schema=schema)
        return ResponseDescriptor(success, {200: success.schema()})

    def test_empty_object(self):
        assert self._descriptor({"a": (int, 0)}).empty_success_body() == {}

    def test_empty_array(self):
        assert self._descriptor(list[int]).empty_success_body() == []

    def test_empty_string(self):
        assert self._descriptor(NO_OUTPUT).empty_success_body() == ""

    def test_unvalidated(self):
        assert ResponseDescriptor(None).empty_success_body() == ""
        assert UNVALIDATED is not None

    def test_fresh_container_each_time(self):
        descriptor = self._descriptor(list[int])
        first = descriptor.empty_success_body()
        first.append(1)
        assert descriptor.empty_success_body() == []

    def test_success_status(self):
        descriptor = self._descriptor({"a": int})
        assert descriptor.success_status == 200
        assert descriptor.schema_for(200) is descriptor.success_schema
        assert descriptor.schema_for(404) is None

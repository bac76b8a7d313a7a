"""
Tests for the catalog builder and schema bundle loading.

Run with: pytest tests/test_catalog.py -v
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from toolbridge.tools import (
    Positional,
    SchemaBundle,
    ToolBridge,
    ToolConfigurationError,
    ToolNotFoundError,
    Unary,
    compile_tools,
)
from toolbridge.tools.catalog import build_catalog, empty_params_schema


class TestOutputSchemas:
    """Wrapping rules for result schemas."""

    def test_scalar_result_is_wrapped(self, bridge: ToolBridge) -> None:
        tool = bridge.descriptor("addV1")
        assert tool.wrapped
        assert tool.output_schema == {
            "type": "object",
            "properties": {"result": {"type": "number"}},
            "required": ["result"],
            "additionalProperties": False,
        }

    def test_object_result_is_unchanged(self, bridge: ToolBridge, bundle: dict[str, Any]) -> None:
        tool = bridge.descriptor("makeUser")
        assert not tool.wrapped
        assert tool.output_schema == bundle["fns"]["makeUser"]["properties"]["result"]

    def test_array_result_is_wrapped(self, bridge: ToolBridge) -> None:
        tool = bridge.descriptor("listItems")
        assert tool.wrapped
        assert tool.output_schema["properties"]["result"]["type"] == "array"

    def test_missing_result_is_any(self) -> None:
        bundle = SchemaBundle.from_dict({"fns": {"ping": {}}})
        (tool,) = build_catalog(bundle)
        assert tool.wrapped
        assert tool.output_schema["properties"] == {"result": {}}

    def test_wrapped_results_set(self, bridge: ToolBridge) -> None:
        assert bridge.wrapped_results == {t.name for t in bridge.tools if t.wrapped}
        assert "makeUser" not in bridge.wrapped_results
        assert "returnsRecord" in bridge.wrapped_results


class TestInputSchemas:
    def test_params_are_copied_verbatim(self, bridge: ToolBridge, bundle: dict[str, Any]) -> None:
        assert bridge.descriptor("concat").input_schema == bundle["fns"]["concat"]["properties"]["params"]

    def test_no_params_gives_empty_closed_object(self, bridge: ToolBridge) -> None:
        assert bridge.descriptor("noParams").input_schema == empty_params_schema()

    def test_parameter_names_keep_declaration_order(self, bridge: ToolBridge) -> None:
        assert bridge.descriptor("sum").parameter_names == ("s", "r")
        assert bridge.descriptor("makeUser").parameter_names == ("id", "age")


class TestDefinitions:
    def test_definitions_attached_to_both_schemas(self, bridge: ToolBridge) -> None:
        tool = bridge.descriptor("returnsRecord")
        assert tool.definitions == {
            "NumberRecord": {"type": "object", "additionalProperties": {"type": "number"}}
        }
        assert tool.input_schema["definitions"] == tool.definitions
        assert tool.output_schema["definitions"] == tool.definitions

    def test_listing_includes_definitions(self, bridge: ToolBridge) -> None:
        listed = {t["name"]: t for t in bridge.list_tools()["tools"]}
        assert listed["returnsRecord"]["outputSchema"]["definitions"]
        assert "definitions" not in listed["addV1"]

    def test_empty_definitions_are_still_attached(self) -> None:
        bundle = SchemaBundle.from_dict(
            {"fns": {"ping": {"properties": {"result": {"type": "string"}}, "definitions": {}}}}
        )
        (tool,) = build_catalog(bundle)
        assert tool.input_schema["definitions"] == {}
        assert tool.output_schema["definitions"] == {}


class TestCatalog:
    def test_bundle_order_is_kept(self, bridge: ToolBridge, bundle: dict[str, Any]) -> None:
        assert bridge.available_tools == list(bundle["fns"])

    def test_list_tools_is_idempotent(self, bridge: ToolBridge) -> None:
        first = copy.deepcopy(bridge.list_tools())
        second = bridge.list_tools()
        assert first == second
        assert bridge.list_tools() is second

    def test_mutating_the_listing_does_not_touch_validation(self, bridge: ToolBridge) -> None:
        listed = {t["name"]: t for t in bridge.list_tools()["tools"]}
        listed["addV1"]["inputSchema"]["properties"]["b"]["type"] = "string"
        assert bridge.descriptor("addV1").input_schema["properties"]["b"] == {"type": "number"}
        assert bridge.validate("addV1", {"a": 4, "b": 5}).valid

    def test_listing_shape(self, bridge: ToolBridge) -> None:
        tool = bridge.list_tools()["tools"][0]
        assert tool["name"] == "addV1"
        assert tool["description"] == "Add two numbers"
        assert set(tool) == {"name", "description", "inputSchema", "outputSchema"}

    def test_bundle_is_not_mutated(self, functions: dict[str, Any], bundle: dict[str, Any]) -> None:
        before = copy.deepcopy(bundle)
        compile_tools(functions, bundle)
        assert bundle == before

    def test_build_is_deterministic(self, bundle: dict[str, Any]) -> None:
        parsed = SchemaBundle.from_dict(bundle)
        assert build_catalog(parsed) == build_catalog(parsed)

    def test_missing_function_is_a_configuration_error(
        self, functions: dict[str, Any], bundle: dict[str, Any]
    ) -> None:
        del functions["concat"]
        with pytest.raises(ToolNotFoundError, match="concat"):
            compile_tools(functions, bundle)

    def test_unknown_descriptor_raises(self, bridge: ToolBridge) -> None:
        with pytest.raises(ToolNotFoundError):
            bridge.descriptor("nope")


class TestConventions:
    def test_unary(self, bridge: ToolBridge) -> None:
        assert bridge.descriptor("addV2").convention == Unary()

    def test_fixed_plus_rest(self, bridge: ToolBridge) -> None:
        convention = bridge.descriptor("sum").convention
        assert isinstance(convention, Positional)
        assert convention.fixed == ("s",)
        assert convention.rest == "r"
        assert convention.arity == 1

    def test_pure_rest(self, bridge: ToolBridge) -> None:
        convention = bridge.descriptor("restSum").convention
        assert convention.arity == 0
        assert convention.rest == "arg0"

    def test_keyword_only(self, bridge: ToolBridge) -> None:
        convention = bridge.descriptor("greet").convention
        assert convention.fixed == ("name",)
        assert convention.rest is None
        assert convention.keywords == ("punctuation",)


class TestSchemaBundle:
    def test_from_dict(self, bundle: dict[str, Any]) -> None:
        parsed = SchemaBundle.from_dict(bundle)
        assert parsed.unary_fns == frozenset({"addV2"})
        assert parsed.fns["addV1"].description == "Add two numbers"
        assert parsed.fns["noParams"].params is None

    def test_snake_case_unary_key(self) -> None:
        parsed = SchemaBundle.from_dict({"fns": {}, "unary_fns": ["x"]})
        assert parsed.unary_fns == frozenset({"x"})

    def test_load(self, tmp_path: Path, bundle: dict[str, Any]) -> None:
        path = tmp_path / "schemas.json"
        path.write_text(json.dumps(bundle), encoding="utf-8")
        parsed = SchemaBundle.load(path)
        assert list(parsed.fns) == list(bundle["fns"])

    def test_bad_fns_shape(self) -> None:
        with pytest.raises(ToolConfigurationError):
            SchemaBundle.from_dict({"fns": ["addV1"]})

    def test_compile_from_module_like_object(self, bundle: dict[str, Any]) -> None:
        class Tools:
            @staticmethod
            def addV1(a: float, b: float) -> float:
                return a + b

        small = {"fns": {"addV1": bundle["fns"]["addV1"]}}
        bridge = compile_tools(Tools, small)
        assert bridge.available_tools == ["addV1"]

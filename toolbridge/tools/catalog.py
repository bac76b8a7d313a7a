"""
Catalog builder: one `ToolDescriptor` per schema bundle entry.

Rules:
- A result schema that is not object-typed is boxed as `{result: <raw>}`
  and the tool is marked wrapped (arrays included)
- A function without params gets an empty, closed object schema
- Shared definitions are attached to both input and output schemas so each
  is self-contained for validators without a shared registry
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from .base import (
    FunctionRegistry,
    FunctionSchema,
    SchemaBundle,
    ToolDescriptor,
    ToolNotFoundError,
    Unary,
)
from .marshal import call_convention

logger = logging.getLogger("toolbridge.catalog")


def empty_params_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {},
        "required": [],
        "additionalProperties": False,
    }


def is_object_schema(schema: Any) -> bool:
    return isinstance(schema, dict) and schema.get("type") == "object"


def wrap_result_schema(result: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {"result": result},
        "required": ["result"],
        "additionalProperties": False,
    }


def build_descriptor(
    name: str,
    definition: FunctionSchema,
    *,
    unary: bool = False,
    fn: Any = None,
) -> ToolDescriptor:
    """Build the descriptor for a single bundle entry (input is not mutated)."""
    # Absent result schema means "any"
    result = copy.deepcopy(definition.result) if definition.result is not None else {}
    wrapped = not is_object_schema(result)
    output_schema = wrap_result_schema(result) if wrapped else result

    if definition.params is not None:
        input_schema = copy.deepcopy(definition.params)
    else:
        input_schema = empty_params_schema()

    definitions = copy.deepcopy(definition.definitions)
    if definitions is not None:
        input_schema["definitions"] = definitions
        output_schema["definitions"] = definitions

    keys = tuple(input_schema.get("properties") or {})
    convention = Unary() if unary else call_convention(fn, keys)

    return ToolDescriptor(
        name=name,
        input_schema=input_schema,
        output_schema=output_schema,
        description=definition.description,
        definitions=definitions,
        wrapped=wrapped,
        convention=convention,
    )


def build_catalog(
    bundle: SchemaBundle,
    registry: FunctionRegistry | None = None,
) -> tuple[ToolDescriptor, ...]:
    """
    Build the tool catalog in bundle order.

    When a registry is given, every bundled name must resolve to a callable
    (its signature decides arity and variadic tail). Without one, schema
    properties are bound positionally one-to-one.
    """
    descriptors = []
    for name, definition in bundle.fns.items():
        fn = None
        if registry is not None:
            if name not in registry:
                raise ToolNotFoundError(name)
            fn = registry[name]
        descriptor = build_descriptor(
            name, definition, unary=name in bundle.unary_fns, fn=fn
        )
        logger.debug(
            f"Built tool {name}: wrapped={descriptor.wrapped}, "
            f"convention={descriptor.convention}"
        )
        descriptors.append(descriptor)
    return tuple(descriptors)

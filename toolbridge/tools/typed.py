"""
Typed-schema adapter (pydantic).

Some hosts register tools with pydantic models instead of raw JSON Schema.
The models built here accept anything at the type level and delegate the
whole-object check to the JSON Schema gateway, so both paths share exactly
the same accept/reject rules. Gateway issues become pydantic line errors
with `loc` set to the issue's path segments after the root.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model, model_validator
from pydantic_core import InitErrorDetails, PydanticCustomError

from .base import ToolConfigurationError, ToolDescriptor, ValidationIssue
from .validation import ValidationGateway


@dataclass(frozen=True)
class TypedSchemas:
    input_model: type[BaseModel]
    output_model: type[BaseModel]


def _model_name(tool_name: str, suffix: str) -> str:
    parts = re.split(r"[^0-9A-Za-z]+", tool_name)
    stem = "".join(p[:1].upper() + p[1:] for p in parts if p) or "Tool"
    return f"{stem}{suffix}"


def _permissive_fields(schema: dict[str, Any], base: type[BaseModel]) -> dict[str, Any]:
    """One `Any = None` field per schema property; odd keys go through aliases."""
    fields: dict[str, Any] = {}
    for index, key in enumerate(schema.get("properties") or {}):
        if (
            key.isidentifier()
            and not key.startswith(("_", "model_"))
            and not hasattr(base, key)
        ):
            fields[key] = (Any, None)
        else:
            fields[f"field_{index}"] = (Any, Field(default=None, alias=key))
    return fields


def _line_error(issue: ValidationIssue, data: Any) -> InitErrorDetails:
    details: InitErrorDetails = {
        "type": PydanticCustomError(
            "json_schema",
            "{message}",
            {"message": issue.message, "schema_path": issue.schema_path},
        ),
        "input": data,
    }
    if issue.path_segments:
        details["loc"] = issue.path_segments
    return details


def _schema_base(base: type[BaseModel], original: dict[str, Any]) -> type[BaseModel]:
    """Permissive base whose JSON Schema is the tool's original schema."""

    class JsonSchemaBacked(base):
        model_config = ConfigDict(extra="allow", populate_by_name=True)

        @classmethod
        def model_json_schema(cls, *args: Any, **kwargs: Any) -> dict[str, Any]:
            return copy.deepcopy(original)

    return JsonSchemaBacked


def bind_typed_schema(
    gateway: ValidationGateway,
    descriptor: ToolDescriptor,
    base: type[BaseModel] | None = BaseModel,
) -> TypedSchemas:
    """
    Build pydantic input/output models for a tool.

    The output model performs no validation; it only carries the original
    output JSON Schema for documentation (`model_json_schema()`).
    """
    if base is None:
        raise ToolConfigurationError("typed-schema base model not provided")

    name = descriptor.name

    def delegate_to_json_schema(cls, data: Any) -> Any:
        result = gateway.validate(name, data)
        if not result.valid:
            raise ValidationError.from_exception_data(
                cls.__name__, [_line_error(issue, data) for issue in result.errors]
            )
        return data

    input_model = create_model(
        _model_name(name, "Input"),
        __base__=_schema_base(base, descriptor.input_schema),
        __validators__={
            "delegate_to_json_schema": model_validator(mode="before")(delegate_to_json_schema)
        },
        **_permissive_fields(descriptor.input_schema, base),
    )
    output_model = create_model(
        _model_name(name, "Output"),
        __base__=_schema_base(base, descriptor.output_schema),
        **_permissive_fields(descriptor.output_schema, base),
    )

    return TypedSchemas(input_model=input_model, output_model=output_model)

"""
Base types for the tool bridge.

A schema bundle (produced upstream by a schema generator) describes each
function's call arguments and return value as JSON Schema. The catalog
builder turns every bundle entry into an immutable `ToolDescriptor` that
bundles:
- The protocol-facing schemas (input, output, definitions)
- How the underlying callable is invoked (`CallConvention`)
- Whether the raw return value is boxed under a `result` key
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Coroutine, Union


# Type alias for tool callables (sync or async)
ToolFunction = Callable[..., Union[Any, Coroutine[Any, Any, Any]]]

# name -> callable, owned by the caller
FunctionRegistry = Mapping[str, ToolFunction]


# --- Errors ---


class ToolBridgeError(Exception):
    """Base class for tool bridge errors."""


class ToolConfigurationError(ToolBridgeError):
    """The bundle, registry or options are inconsistent (a setup defect)."""


class ToolNotFoundError(ToolConfigurationError, LookupError):
    """A tool name is absent from the catalog or the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool not found: {name}")
        self.tool_name = name


# --- Schema bundle (external input) ---


@dataclass(frozen=True)
class FunctionSchema:
    """One generator entry: params/result sub-schemas plus shared definitions."""

    params: dict[str, Any] | None = None
    result: dict[str, Any] | None = None
    description: str | None = None
    definitions: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FunctionSchema:
        properties = data.get("properties") or {}
        return cls(
            params=properties.get("params"),
            result=properties.get("result"),
            description=data.get("description"),
            definitions=data.get("definitions"),
        )


@dataclass(frozen=True)
class SchemaBundle:
    """
    Schema generator output.

    `fns` preserves the generator's ordering; the catalog is emitted in
    the same order.
    """

    fns: dict[str, FunctionSchema]
    unary_fns: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SchemaBundle:
        fns = data.get("fns", {})
        if not isinstance(fns, Mapping):
            raise ToolConfigurationError(
                f"Schema bundle 'fns' must be a mapping, got {type(fns).__name__}"
            )
        unary = data.get("unaryFns", data.get("unary_fns", ()))
        return cls(
            fns={name: FunctionSchema.from_dict(entry) for name, entry in fns.items()},
            unary_fns=frozenset(unary),
        )

    @classmethod
    def load(cls, path: str | Path) -> SchemaBundle:
        """Load a bundle saved as JSON."""
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


# --- Call conventions ---


@dataclass(frozen=True)
class Unary:
    """The callable takes the argument object itself as its only argument."""


@dataclass(frozen=True)
class Positional:
    """
    The argument object is unpacked by schema property order.

    fixed: property names bound to the fixed positional parameters
    rest: property whose sequence value is spread as the variadic tail
    keywords: properties passed by keyword (keyword-only parameters)
    defaults: value used for each fixed slot when its key is absent
    """

    fixed: tuple[str, ...] = ()
    rest: str | None = None
    keywords: tuple[str, ...] = ()
    defaults: tuple[Any, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.fixed)

    @property
    def has_variadic_tail(self) -> bool:
        return self.rest is not None


CallConvention = Union[Unary, Positional]


# --- Catalog ---


@dataclass(frozen=True)
class ToolDescriptor:
    """
    Immutable tool description (read-only after catalog build).

    This is what gets listed to the remote caller.
    """

    name: str
    input_schema: dict[str, Any]
    output_schema: dict[str, Any]
    description: str | None = None
    definitions: dict[str, Any] | None = None
    wrapped: bool = False
    convention: CallConvention = field(default_factory=Positional)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Input property names in declaration order."""
        return tuple(self.input_schema.get("properties") or {})

    def to_schema(self) -> dict[str, Any]:
        """Convert to the protocol's tool listing shape."""
        schema: dict[str, Any] = {
            "name": self.name,
            "inputSchema": self.input_schema,
            "outputSchema": self.output_schema,
        }
        if self.description is not None:
            schema["description"] = self.description
        if self.definitions is not None:
            schema["definitions"] = self.definitions
        return schema


# --- Validation ---


@dataclass(frozen=True)
class ValidationIssue:
    """A single schema violation, rooted at the argument object."""

    instance_path: str
    message: str
    schema_path: str = "#"
    keyword: str = ""
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def path_segments(self) -> tuple[str, ...]:
        """JSON-pointer segments after the root ("" -> ())."""
        if not self.instance_path:
            return ()
        return tuple(
            seg.replace("~1", "/").replace("~0", "~")
            for seg in self.instance_path.split("/")[1:]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "instancePath": self.instance_path,
            "schemaPath": self.schema_path,
            "keyword": self.keyword,
            "params": self.params,
            "message": self.message,
        }


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[ValidationIssue, ...] = ()
    instance: Any = None


# --- Invocation outcomes ---


@dataclass(frozen=True)
class CallSuccess:
    """Return value of a tool, already boxed when the tool is wrapped."""

    value: Any


@dataclass(frozen=True)
class CallFailure:
    """Exception raised by a tool (or by its awaitable)."""

    error: Exception


CallOutcome = Union[CallSuccess, CallFailure]

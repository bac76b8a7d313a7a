"""
Compiled tool bridge: catalog, validation, invocation and protocol handlers.

Architecture:
- Catalog and wrapped-result set are computed once at construction
- Handlers close over that read-only state; nothing is shared across calls
- Supports both sync and async tool functions
- `call_tool` / `handle_call_tool` always resolve to an envelope once the
  tool name is known to exist
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from ..config import DEFAULT_OPTIONS, CompileOptions
from .base import (
    FunctionRegistry,
    SchemaBundle,
    ToolDescriptor,
    ToolFunction,
    ToolNotFoundError,
    ValidationResult,
)
from .catalog import build_catalog
from .invoker import apply_tool, run_tool, shape_outcome, shape_validation_errors
from .typed import TypedSchemas, bind_typed_schema
from .validation import JsonSchemaEngine, ValidationGateway

logger = logging.getLogger("toolbridge.tools")


class ToolBridge:
    """
    Adapts a registry of plain callables into schema-validated tools.

    Provides:
    - Tool listing (`list_tools`, `tools`)
    - Argument validation (`validate`) and typed-schema models (`bind_typed_schema`)
    - Raw calls (`apply`) and protocol-shaped calls (`call_tool`, `handle_call_tool`)

    The engine instance is scoped to this bridge. Sharing one engine between
    bridges is safe only while their schemas agree on shared definitions.
    """

    def __init__(
        self,
        tools: FunctionRegistry,
        schemas: SchemaBundle,
        options: CompileOptions = DEFAULT_OPTIONS,
    ) -> None:
        self._functions = tools
        self.options = options
        self._catalog: tuple[ToolDescriptor, ...] = build_catalog(schemas, tools)
        self._by_name: dict[str, ToolDescriptor] = {t.name: t for t in self._catalog}
        self.wrapped_results: frozenset[str] = frozenset(
            t.name for t in self._catalog if t.wrapped
        )
        # Listing schemas are copies; validators compile from the descriptors
        self._listing: dict[str, Any] = {
            "tools": [copy.deepcopy(t.to_schema()) for t in self._catalog]
        }
        self._gateway = ValidationGateway(
            self.descriptor, options.engine or JsonSchemaEngine()
        )
        logger.info(
            f"Compiled {len(self._catalog)} tools "
            f"({len(self.wrapped_results)} wrapped, validate_calls={options.validate_calls})"
        )

    # --- Catalog ---

    @property
    def tools(self) -> tuple[ToolDescriptor, ...]:
        return self._catalog

    @property
    def available_tools(self) -> list[str]:
        return [t.name for t in self._catalog]

    @property
    def validate_calls(self) -> bool:
        return self.options.validate_calls

    def descriptor(self, name: str) -> ToolDescriptor:
        """Get a tool's descriptor by name."""
        try:
            return self._by_name[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def _resolve(self, name: str) -> tuple[ToolDescriptor, ToolFunction]:
        descriptor = self.descriptor(name)
        fn = self._functions.get(name)
        if fn is None:
            raise ToolNotFoundError(name)
        return descriptor, fn

    def list_tools(self) -> dict[str, Any]:
        """Protocol handler: the catalog computed at construction."""
        return self._listing

    # --- Validation ---

    def validate(self, name: str, arguments: Any) -> ValidationResult:
        return self._gateway.validate(name, arguments)

    def bind_typed_schema(self, name: str) -> TypedSchemas:
        """Build pydantic input/output models for tool `name`."""
        return bind_typed_schema(
            self._gateway, self.descriptor(name), base=self.options.typed_base
        )

    # --- Invocation ---

    async def apply(self, name: str, arguments: Mapping[str, Any] | None = None) -> Any:
        """
        Raw call: maps the argument object onto the function's parameters
        and boxes non-object results. Does NOT return a protocol envelope;
        tool exceptions propagate.
        """
        descriptor, fn = self._resolve(name)
        return await apply_tool(
            fn,
            descriptor,
            arguments if arguments is not None else {},
            run_sync_in_thread=self.options.run_sync_in_thread,
        )

    async def call_tool(
        self, name: str, arguments: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Call the tool and return the protocol-shaped result (never raises past lookup)."""
        descriptor, fn = self._resolve(name)
        outcome = await run_tool(
            fn,
            descriptor,
            arguments if arguments is not None else {},
            run_sync_in_thread=self.options.run_sync_in_thread,
        )
        return shape_outcome(descriptor, outcome)

    async def handle_call_tool(
        self, name: str, arguments: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Protocol handler: validate (when enabled), then `call_tool`."""
        if arguments is None:
            arguments = {}
        if self.options.validate_calls:
            result = self.validate(name, arguments)
            if not result.valid:
                return shape_validation_errors(result.errors)
        return await self.call_tool(name, arguments)


def compile_tools(
    tools: FunctionRegistry | Any,
    schemas: SchemaBundle | Mapping[str, Any],
    options: CompileOptions | None = None,
    **overrides: Any,
) -> ToolBridge:
    """
    Compile a registry and its schema bundle into a `ToolBridge`.

    `tools` may be a mapping or a module/object whose attributes are the
    bundled functions. `schemas` may be a `SchemaBundle` or the generator's
    raw dict. Keyword overrides replace fields of `options`.
    """
    bundle = schemas if isinstance(schemas, SchemaBundle) else SchemaBundle.from_dict(schemas)
    if not isinstance(tools, Mapping):
        tools = {name: getattr(tools, name) for name in bundle.fns if hasattr(tools, name)}
    options = options or DEFAULT_OPTIONS
    if overrides:
        options = replace(options, **overrides)
    return ToolBridge(tools, bundle, options)

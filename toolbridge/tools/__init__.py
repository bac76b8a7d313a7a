"""
Tools package: compile plain callables into schema-validated tools.

Architecture:
- base: core types (bundle, descriptors, call conventions, outcomes)
- catalog: builds one descriptor per schema bundle entry
- marshal: maps JSON argument objects onto native calls
- validation / typed: JSON Schema gateway and its pydantic adapter
- invoker: runs tools and shapes protocol envelopes
- registry: the compiled `ToolBridge` and its protocol handlers

Public API:
- compile_tools, ToolBridge: compile and use a tool registry
- SchemaBundle, FunctionSchema: schema generator output
- ToolDescriptor, Unary, Positional: catalog entries
- JsonSchemaEngine: validation engine (override strictness/format settings)
"""

from .base import (
    CallFailure,
    CallSuccess,
    FunctionSchema,
    Positional,
    SchemaBundle,
    ToolBridgeError,
    ToolConfigurationError,
    ToolDescriptor,
    ToolFunction,
    ToolNotFoundError,
    Unary,
    ValidationIssue,
    ValidationResult,
)
from .registry import ToolBridge, compile_tools
from .typed import TypedSchemas
from .validation import JsonSchemaEngine

__all__ = [
    "CallFailure",
    "CallSuccess",
    "FunctionSchema",
    "JsonSchemaEngine",
    "Positional",
    "SchemaBundle",
    "ToolBridge",
    "ToolBridgeError",
    "ToolConfigurationError",
    "ToolDescriptor",
    "ToolFunction",
    "ToolNotFoundError",
    "TypedSchemas",
    "Unary",
    "ValidationIssue",
    "ValidationResult",
    "compile_tools",
]

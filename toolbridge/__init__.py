"""Adapt plain callables into a schema-validated tool interface."""

from .config import CompileOptions, ServerSettings
from .tools import (
    JsonSchemaEngine,
    SchemaBundle,
    ToolBridge,
    ToolConfigurationError,
    ToolDescriptor,
    ToolNotFoundError,
    compile_tools,
)

__version__ = "0.1.0"

__all__ = [
    "CompileOptions",
    "JsonSchemaEngine",
    "SchemaBundle",
    "ServerSettings",
    "ToolBridge",
    "ToolConfigurationError",
    "ToolDescriptor",
    "ToolNotFoundError",
    "compile_tools",
]

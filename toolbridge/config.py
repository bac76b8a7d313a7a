"""
Centralized configuration for compiling and serving tools.

Architecture:
- CompileOptions: immutable construction-time settings of a compiled core
- ServerSettings: where the optional HTTP host listens
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from .tools.validation import JsonSchemaEngine


@dataclass(frozen=True)
class CompileOptions:
    """
    Immutable compile-time configuration.

    validate_calls: validate arguments against the input schema before each call
    engine: JSON Schema engine (one per core; None builds a default engine)
    typed_base: base class for typed-schema models, None disables the adapter
    run_sync_in_thread: run sync tools via asyncio.to_thread
    """

    validate_calls: bool = True
    engine: JsonSchemaEngine | None = None
    typed_base: type[BaseModel] | None = BaseModel
    run_sync_in_thread: bool = False


@dataclass(frozen=True)
class ServerSettings:
    """HTTP host settings."""

    host: str = "127.0.0.1"
    port: int = 5997
    log_level: str = "INFO"


DEFAULT_OPTIONS = CompileOptions()

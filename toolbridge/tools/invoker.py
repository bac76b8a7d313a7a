"""
Invocation and response shaping.

`run_tool` never raises for failures inside the tool: it returns a
`CallSuccess` (value already boxed for wrapped tools) or a `CallFailure`.
The `shape_*` functions turn outcomes into the protocol envelopes:

    success: {"content": [{"type": "text", "text": ...}], "structuredContent": ...}
    error:   {"isError": True, "content": [{"type": "text", "text": ...}]}
"""

from __future__ import annotations

import json
import logging
import traceback
from collections.abc import Iterable, Mapping
from typing import Any

from .base import (
    CallFailure,
    CallOutcome,
    CallSuccess,
    ToolDescriptor,
    ToolFunction,
    ValidationIssue,
)
from .marshal import invoke

logger = logging.getLogger("toolbridge.invoker")


def box_result(descriptor: ToolDescriptor, value: Any) -> Any:
    return {"result": value} if descriptor.wrapped else value


async def apply_tool(
    fn: ToolFunction,
    descriptor: ToolDescriptor,
    arguments: Mapping[str, Any],
    *,
    run_sync_in_thread: bool = False,
) -> Any:
    """Raw call: marshal, invoke, box. Tool exceptions propagate."""
    value = await invoke(fn, descriptor, arguments, run_sync_in_thread=run_sync_in_thread)
    return box_result(descriptor, value)


async def run_tool(
    fn: ToolFunction,
    descriptor: ToolDescriptor,
    arguments: Mapping[str, Any],
    *,
    run_sync_in_thread: bool = False,
) -> CallOutcome:
    try:
        value = await apply_tool(
            fn, descriptor, arguments, run_sync_in_thread=run_sync_in_thread
        )
    except Exception as e:
        logger.exception(f"Tool {descriptor.name} execution failed")
        return CallFailure(e)
    return CallSuccess(value)


# --- Envelopes ---


def text_content(text: str) -> list[dict[str, str]]:
    return [{"type": "text", "text": text}]


def error_envelope(text: str) -> dict[str, Any]:
    return {"isError": True, "content": text_content(text)}


def error_summary(error: BaseException) -> dict[str, Any]:
    return {
        "name": type(error).__name__,
        "message": str(error),
        "stack": "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ),
    }


def error_payload(error: BaseException) -> dict[str, Any]:
    """Message, stack and any attributes the exception carries."""
    payload = error_summary(error)
    for key, value in vars(error).items():
        if not key.startswith("_"):
            payload[key] = value
    return payload


_UNSERIALIZABLE = (TypeError, ValueError, RecursionError)


def shape_failure(error: BaseException) -> dict[str, Any]:
    try:
        text = json.dumps(error_payload(error), default=str)
    except _UNSERIALIZABLE as e:
        logger.warning(f"Dropping unserializable attributes of {type(error).__name__}: {e}")
        text = json.dumps(error_summary(error))
    return error_envelope(text)


def shape_success(descriptor: ToolDescriptor, value: Any) -> dict[str, Any]:
    """
    Success envelope for a (possibly boxed) value.

    Wrapped string results are sent as raw text so purely textual tools
    read naturally; everything else is pretty-printed JSON.
    """
    if descriptor.wrapped and isinstance(value, dict) and isinstance(value.get("result"), str):
        text = value["result"]
    else:
        text = json.dumps(value, indent=2, default=str)
    return {"content": text_content(text), "structuredContent": value}


def shape_outcome(descriptor: ToolDescriptor, outcome: CallOutcome) -> dict[str, Any]:
    if isinstance(outcome, CallFailure):
        return shape_failure(outcome.error)
    try:
        return shape_success(descriptor, outcome.value)
    except _UNSERIALIZABLE as e:
        # circular or too deeply nested
        logger.warning(f"Tool {descriptor.name} returned an unserializable value: {e}")
        return shape_failure(e)


def shape_validation_errors(errors: Iterable[ValidationIssue]) -> dict[str, Any]:
    return error_envelope(json.dumps([e.to_dict() for e in errors]))

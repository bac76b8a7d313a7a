"""
Argument marshalling: JSON argument object -> native call.

The schema generator emits `params.properties` in declared parameter order,
so property order is the positional-order oracle. The callable's signature
decides how many of those properties are fixed positionals and whether the
next one is spread as `*args`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .base import CallConvention, Positional, ToolDescriptor, ToolFunction, Unary

logger = logging.getLogger("toolbridge.marshal")

_FIXED_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def call_convention(fn: ToolFunction | None, keys: Sequence[str]) -> Positional:
    """
    Derive the positional convention of `fn` for the ordered schema `keys`.

    Without an inspectable signature every key is a fixed positional.
    """
    keys = tuple(keys)
    if fn is None:
        return Positional(fixed=keys, defaults=(None,) * len(keys))
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        logger.debug(f"No signature for {fn!r}, binding {len(keys)} keys positionally")
        return Positional(fixed=keys, defaults=(None,) * len(keys))

    params = list(sig.parameters.values())
    fixed_params = [p for p in params if p.kind in _FIXED_KINDS]
    has_varargs = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)
    kwonly = {p.name for p in params if p.kind is inspect.Parameter.KEYWORD_ONLY}

    arity = min(len(fixed_params), len(keys))
    fixed = keys[:arity]
    defaults = tuple(
        None if p.default is inspect.Parameter.empty else p.default
        for p in fixed_params[:arity]
    )
    tail = keys[arity:]
    rest = None
    if has_varargs and tail:
        rest, tail = tail[0], tail[1:]
    keywords = tuple(k for k in tail if k in kwonly)
    return Positional(fixed=fixed, rest=rest, keywords=keywords, defaults=defaults)


def marshal_arguments(
    convention: CallConvention,
    arguments: Mapping[str, Any],
) -> tuple[list[Any], dict[str, Any]]:
    """Build `(args, kwargs)` for one call."""
    if isinstance(convention, Unary):
        return [arguments], {}

    values: list[Any] = []
    for key, default in zip(convention.fixed, convention.defaults):
        values.append(arguments[key] if key in arguments else default)

    if convention.rest is not None:
        tail = arguments.get(convention.rest)
        if tail is not None:
            values.extend(tail)

    kwargs = {k: arguments[k] for k in convention.keywords if k in arguments}
    return values, kwargs


async def invoke(
    fn: ToolFunction,
    descriptor: ToolDescriptor,
    arguments: Mapping[str, Any],
    *,
    run_sync_in_thread: bool = False,
) -> Any:
    """
    Call `fn` with marshalled arguments, awaiting async results.

    Exceptions from the callable propagate unchanged.
    """
    args, kwargs = marshal_arguments(descriptor.convention, arguments)
    logger.debug(f"Invoking {descriptor.name} with {len(args)} positional, {len(kwargs)} keyword")

    if run_sync_in_thread and not inspect.iscoroutinefunction(fn):
        # Sync tool - run in thread pool to avoid blocking event loop
        result = await asyncio.to_thread(fn, *args, **kwargs)
    else:
        result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result

"""
Shared fixtures: sample tool functions and the schema bundle a generator
would emit for them.
"""

from __future__ import annotations

import functools
from typing import Any, Callable

import pytest

from toolbridge import compile_tools
from toolbridge.tools import ToolBridge


# --- Sample tools ---


class QuotaExceeded(Exception):
    def __init__(self, message: str, limit: int) -> None:
        super().__init__(message)
        self.limit = limit


def add_v1(a: float, b: float) -> float:
    return a + b


def add_v2(params: dict[str, float]) -> float:
    return params["a"] + params["b"]


def say_hi(name: str) -> str:
    return f"Hi, {name}!"


def sum_rest(s: float, *r: float) -> float:
    return s + sum(r)


def rest_sum(*ns: float) -> float:
    return sum(ns)


def concat(a: str, b: str) -> str:
    return a + b


async def make_user(id: str, age: int) -> dict[str, Any]:
    return {"id": id, "age": age}


def returns_record() -> dict[str, int]:
    return {"a": 1, "b": 2}


def no_params() -> int:
    return 123


def explode() -> str:
    raise RuntimeError("boom")


async def over_quota(n: int) -> int:
    raise QuotaExceeded("quota exceeded", limit=n)


def list_items(n: int) -> list[int]:
    return list(range(n))


def greet(name: str, *, punctuation: str = "!") -> str:
    return f"Hello {name}{punctuation}"


def power(base: float, exponent: float = 2) -> float:
    return base**exponent


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "addV1": add_v1,
    "addV2": add_v2,
    "sayHi": say_hi,
    "sum": sum_rest,
    "restSum": rest_sum,
    "concat": concat,
    "makeUser": make_user,
    "returnsRecord": returns_record,
    "noParams": no_params,
    "explode": explode,
    "overQuota": over_quota,
    "listItems": list_items,
    "greet": greet,
    "power": power,
}


# --- Schema bundle ---


def _object(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


NUMBER = {"type": "number"}
STRING = {"type": "string"}
INTEGER = {"type": "integer"}
NUMBERS = {"type": "array", "items": NUMBER}


def make_bundle() -> dict[str, Any]:
    """Fresh copy of the generator output for the sample tools."""
    return {
        "fns": {
            "addV1": {
                "description": "Add two numbers",
                "properties": {
                    "params": _object({"a": NUMBER, "b": NUMBER}, ["a", "b"]),
                    "result": NUMBER,
                },
            },
            "addV2": {
                "properties": {
                    "params": _object({"a": NUMBER, "b": NUMBER}, ["a", "b"]),
                    "result": NUMBER,
                },
            },
            "sayHi": {
                "properties": {
                    "params": _object({"name": STRING}, ["name"]),
                    "result": STRING,
                },
            },
            "sum": {
                "properties": {
                    "params": _object({"s": NUMBER, "r": NUMBERS}, ["s", "r"]),
                    "result": NUMBER,
                },
            },
            "restSum": {
                "properties": {
                    "params": _object({"arg0": NUMBERS}, ["arg0"]),
                    "result": NUMBER,
                },
            },
            "concat": {
                "properties": {
                    "params": _object({"a": STRING, "b": STRING}, ["a", "b"]),
                    "result": STRING,
                },
            },
            "makeUser": {
                "properties": {
                    "params": _object({"id": STRING, "age": NUMBER}, ["id", "age"]),
                    "result": _object({"id": STRING, "age": NUMBER}, ["id", "age"]),
                },
            },
            "returnsRecord": {
                "properties": {
                    "params": _object({}, []),
                    "result": {"$ref": "#/definitions/NumberRecord"},
                },
                "definitions": {
                    "NumberRecord": {
                        "type": "object",
                        "additionalProperties": NUMBER,
                    },
                },
            },
            "noParams": {
                "properties": {"result": NUMBER},
            },
            "explode": {
                "properties": {"params": _object({}, []), "result": STRING},
            },
            "overQuota": {
                "properties": {
                    "params": _object({"n": INTEGER}, ["n"]),
                    "result": INTEGER,
                },
            },
            "listItems": {
                "properties": {
                    "params": _object({"n": {"type": "integer", "minimum": 0}}, ["n"]),
                    "result": {"type": "array", "items": INTEGER},
                },
            },
            "greet": {
                "properties": {
                    "params": _object({"name": STRING, "punctuation": STRING}, ["name"]),
                    "result": STRING,
                },
            },
            "power": {
                "properties": {
                    "params": _object({"base": NUMBER, "exponent": NUMBER}, ["base"]),
                    "result": NUMBER,
                },
            },
        },
        "unaryFns": ["addV2"],
    }


# --- Spies ---


def spy(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Record every call; the signature of `fn` stays visible to inspect."""
    calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        calls.append((args, kwargs))
        return fn(*args, **kwargs)

    wrapper.calls = calls  # type: ignore[attr-defined]
    return wrapper


# --- Fixtures ---


@pytest.fixture
def bundle() -> dict[str, Any]:
    return make_bundle()


@pytest.fixture
def functions() -> dict[str, Callable[..., Any]]:
    return {name: spy(fn) for name, fn in FUNCTIONS.items()}


@pytest.fixture
def bridge(functions: dict[str, Callable[..., Any]], bundle: dict[str, Any]) -> ToolBridge:
    return compile_tools(functions, bundle)

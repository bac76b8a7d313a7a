"""
Validation gateway: JSON Schema validation of tool arguments.

The engine wraps the `jsonschema` library. Compiled validators return a
`ValidationResult` per run instead of keeping the last run's errors on a
shared object, so one compiled validator can serve concurrent calls.

Issue messages use the wording tool-calling clients expect from JSON
Schema validators ("must be number", "must have required property 'a'").
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import jsonschema
from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError as SchemaViolation
from jsonschema.validators import validator_for

from .base import (
    ToolConfigurationError,
    ToolDescriptor,
    ValidationIssue,
    ValidationResult,
)

logger = logging.getLogger("toolbridge.validation")


# --- Issue formatting ---


def _pointer(segments: Iterable[Any]) -> str:
    return "".join(
        "/" + str(seg).replace("~", "~0").replace("/", "~1") for seg in segments
    )


def _schema_pointer(segments: Iterable[Any]) -> str:
    return "#" + _pointer(segments)


def _type_message(expected: Any) -> str:
    if isinstance(expected, list):
        return "must be " + ",".join(expected)
    return f"must be {expected}"


_LIMITS = {
    "minimum": ">=",
    "maximum": "<=",
    "exclusiveMinimum": ">",
    "exclusiveMaximum": "<",
}

_COUNTS = {
    "minLength": ("fewer", "characters"),
    "maxLength": ("more", "characters"),
    "minItems": ("fewer", "items"),
    "maxItems": ("more", "items"),
    "minProperties": ("fewer", "properties"),
    "maxProperties": ("more", "properties"),
}


def _missing_property(error: SchemaViolation) -> str | None:
    for prop in error.validator_value or ():
        if error.message == f"{prop!r} is a required property":
            return prop
    return None


def _extra_properties(error: SchemaViolation) -> list[str]:
    if not isinstance(error.instance, dict):
        return []
    schema = error.schema or {}
    known = set(schema.get("properties", {}))
    patterns = list(schema.get("patternProperties", {}))
    return [
        k
        for k in error.instance
        if k not in known and not any(re.search(p, k) for p in patterns)
    ]


def to_issue(error: SchemaViolation) -> ValidationIssue:
    """Translate a jsonschema error into a `ValidationIssue`."""
    keyword = str(error.validator)
    value = error.validator_value
    params: dict[str, Any] = {}
    message = error.message

    if keyword == "type":
        params = {"type": value}
        message = _type_message(value)
    elif keyword == "required":
        missing = _missing_property(error)
        if missing is not None:
            params = {"missingProperty": missing}
            message = f"must have required property '{missing}'"
    elif keyword == "additionalProperties" and value is False:
        extras = _extra_properties(error)
        if extras:
            params = {"additionalProperty": extras[0]}
        message = "must NOT have additional properties"
    elif keyword == "enum":
        params = {"allowedValues": value}
        message = "must be equal to one of the allowed values"
    elif keyword == "const":
        params = {"allowedValue": value}
        message = "must be equal to constant"
    elif keyword in _LIMITS:
        params = {"comparison": _LIMITS[keyword], "limit": value}
        message = f"must be {_LIMITS[keyword]} {value}"
    elif keyword in _COUNTS:
        direction, unit = _COUNTS[keyword]
        params = {"limit": value}
        message = f"must NOT have {direction} than {value} {unit}"
    elif keyword == "pattern":
        params = {"pattern": value}
        message = f'must match pattern "{value}"'
    elif keyword == "format":
        params = {"format": value}
        message = f'must match format "{value}"'

    return ValidationIssue(
        instance_path=_pointer(error.absolute_path),
        message=message,
        schema_path=_schema_pointer(error.absolute_schema_path),
        keyword=keyword,
        params=params,
    )


# --- Engine ---


class CompiledValidator:
    """A checked schema bound to a jsonschema validator instance."""

    def __init__(self, validator: jsonschema.protocols.Validator, all_errors: bool) -> None:
        self._validator = validator
        self._all_errors = all_errors

    @property
    def schema(self) -> Mapping[str, Any]:
        return self._validator.schema

    def __call__(self, instance: Any) -> ValidationResult:
        errors = self._validator.iter_errors(instance)
        if self._all_errors:
            issues = tuple(to_issue(e) for e in errors)
        else:
            first = next(errors, None)
            issues = (to_issue(first),) if first is not None else ()
        return ValidationResult(valid=not issues, errors=issues, instance=instance)


class JsonSchemaEngine:
    """
    Compiles JSON Schemas into validators.

    validator_class: fallback draft when a schema carries no `$schema`
    format_checker: enables `format` assertions (off by default)
    all_errors: report every violation instead of stopping at the first
    """

    def __init__(
        self,
        validator_class: type[jsonschema.protocols.Validator] = Draft7Validator,
        format_checker: jsonschema.FormatChecker | None = None,
        all_errors: bool = True,
    ) -> None:
        self.validator_class = validator_class
        self.format_checker = format_checker
        self.all_errors = all_errors

    def compile(self, schema: Mapping[str, Any]) -> CompiledValidator:
        """
        Check `schema` and return a validator for it.

        Raises:
            jsonschema.SchemaError: If the schema itself is invalid
        """
        cls = validator_for(schema, default=self.validator_class)
        cls.check_schema(schema)
        validator = cls(schema, format_checker=self.format_checker)
        return CompiledValidator(validator, self.all_errors)


# --- Gateway ---


class ValidationGateway:
    """
    Validates arguments against a named tool's input schema.

    Compiled validators are memoized per tool name. Two concurrent first
    calls may both compile; the last one wins and both results are valid.
    """

    def __init__(
        self,
        lookup: Callable[[str], ToolDescriptor],
        engine: JsonSchemaEngine | None = None,
    ) -> None:
        self._lookup = lookup
        self.engine = engine or JsonSchemaEngine()
        self._compiled: dict[str, CompiledValidator] = {}

    def compiled(self, name: str) -> CompiledValidator:
        validator = self._compiled.get(name)
        if validator is None:
            descriptor = self._lookup(name)
            try:
                validator = self.engine.compile(descriptor.input_schema)
            except jsonschema.SchemaError as e:
                raise ToolConfigurationError(
                    f"Tool '{name}' has invalid input schema: {e.message}"
                ) from e
            self._compiled[name] = validator
            logger.debug(f"Compiled input validator for {name}")
        return validator

    def validate(self, name: str, arguments: Any) -> ValidationResult:
        """
        Validate `arguments` against the input schema of tool `name`.

        Raises:
            ToolNotFoundError: If no tool is named `name`
        """
        result = self.compiled(name)(arguments)
        if not result.valid:
            logger.warning(
                f"Tool {name} rejected arguments: "
                + "; ".join(f"{e.instance_path or '/'} {e.message}" for e in result.errors)
            )
        return result

"""Validation helpers for model output."""

from __future__ import annotations

import json
from typing import Any

from jsonschema import Draft202012Validator, ValidationError, validate


class ContentValidationError(ValueError):
    """Raised when generated content fails schema checks."""


class MalformedOutputError(ContentValidationError):
    """Raised when model output cannot be parsed or violates its schema."""

    def __init__(self, message: str, *, raw_output: str | None = None) -> None:
        super().__init__(message)
        self.raw_output = raw_output


def extract_json_payload(raw_text: str) -> dict[str, Any]:
    """Parse model output that must be a single bare JSON object.

    Surrounding prose, code fences or trailing text make the whole response
    malformed.
    """
    text = raw_text.strip()
    if not text:
        raise MalformedOutputError("Model returned empty response")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(f"Invalid JSON in model output: {exc.msg}") from exc

    if not isinstance(parsed, dict):
        raise MalformedOutputError("Top-level JSON payload must be an object")

    return parsed


def validate_json_payload(payload: dict[str, Any], schema: dict[str, object]) -> None:
    """Validate payload against schema and surface clean error messages."""
    try:
        validate(instance=payload, schema=schema)
    except ValidationError as exc:
        path = ".".join(str(part) for part in exc.path)
        context = f" at {path}" if path else ""
        raise MalformedOutputError(f"Schema validation failed{context}: {exc.message}") from exc


def collect_schema_errors(payload: Any, schema: dict[str, object]) -> list[str]:
    """Return every schema violation as a readable message, in document order."""
    validator = Draft202012Validator(schema)
    errors: list[str] = []
    ordered = sorted(
        validator.iter_errors(payload),
        key=lambda item: [str(part) for part in item.path],
    )
    for error in ordered:
        path = ".".join(str(part) for part in error.path)
        errors.append(f"{path}: {error.message}" if path else error.message)
    return errors

"""Shared failure handling for the model-backed structure, copy and plan stages."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TypeVar

from services.validator import ContentValidationError, MalformedOutputError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CompositionFailure(RuntimeError):
    """Raised when a model stage returns output that cannot be used."""

    stage: str
    error_summary: str
    dead_letter_path: Path

    def __post_init__(self) -> None:
        # dataclass __init__ never calls RuntimeError.__init__, so
        # exception.args stays empty.  Fill it so logging / traceback
        # formatters that inspect .args work correctly.
        RuntimeError.__init__(self, str(self))

    def __str__(self) -> str:
        return (
            f"Failed to create {self.stage}: {self.error_summary} "
            f"(dead letter: {self.dead_letter_path})"
        )


def save_composition_dead_letter(
    *,
    failure_dir: Path,
    stage: str,
    error_summary: str,
    input_payload: dict[str, Any],
    last_model_output: str | None,
) -> Path:
    """Persist composition failure payload for later replay/debug."""
    failure_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")
    path = failure_dir / f"composition_{stage}_{timestamp}.json"

    payload = {
        "stage": stage,
        "error_summary": error_summary,
        "input_payload": input_payload,
        "last_model_output": last_model_output,
        "created_at": datetime.now(UTC).isoformat(),
    }
    path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return path


def run_composition_stage(
    *,
    stage: str,
    failure_dir: Path,
    input_payload: dict[str, Any],
    operation: Callable[[], T],
) -> T:
    """Run a model stage; unusable output is dead-lettered and raised as CompositionFailure.

    Provider errors propagate unchanged.
    """
    try:
        return operation()
    except ContentValidationError as exc:
        raw_output = exc.raw_output if isinstance(exc, MalformedOutputError) else None
        dead_letter = save_composition_dead_letter(
            failure_dir=failure_dir,
            stage=stage,
            error_summary=str(exc),
            input_payload=input_payload,
            last_model_output=raw_output,
        )
        logger.error("%s stage produced unusable output: %s", stage, exc)
        raise CompositionFailure(
            stage=stage,
            error_summary=str(exc),
            dead_letter_path=dead_letter,
        ) from exc

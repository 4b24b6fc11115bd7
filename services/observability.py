"""Structured logging helpers for pipeline run observability."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

_LOGGER_NAME = "blog_email_agent"


@dataclass(frozen=True)
class LogContext:
    """Context values merged into every structured log event."""

    run_id: str | None = None
    stage: str | None = None


class StructuredLogger:
    """Emit one JSON object per lifecycle event."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(_LOGGER_NAME)

    def info(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit(logging.INFO, event, context=context, fields=fields)

    def error(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit(logging.ERROR, event, context=context, fields=fields)

    def _emit(
        self,
        level: int,
        event: str,
        *,
        context: LogContext | None,
        fields: dict[str, Any],
    ) -> None:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": logging.getLevelName(level).lower(),
            "event": event,
        }
        if context is not None:
            if context.run_id:
                payload["run_id"] = context.run_id
            if context.stage:
                payload["stage"] = context.stage
        payload.update(fields)
        self._logger.log(level, json.dumps(payload, sort_keys=True, default=str))


_default_logger: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _default_logger
    if _default_logger is None:
        _default_logger = StructuredLogger()
    return _default_logger

"""Retry primitives for external service calls."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

import openai
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

T = TypeVar("T")

# Transient exceptions worth retrying.  Auth, bad-request and not-found
# errors fail immediately.
_RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    OSError,
    ConnectionError,
    TimeoutError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class ExternalServiceError(RuntimeError):
    """Raised when an external dependency call fails after retries."""


class ResiliencePolicy:
    """Bounded retry execution policy."""

    def __init__(
        self,
        *,
        name: str,
        max_attempts: int,
        initial_wait_seconds: float = 0.5,
        max_wait_seconds: float = 8.0,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.name = name
        self.max_attempts = max_attempts
        self._initial_wait_seconds = initial_wait_seconds
        self._max_wait_seconds = max_wait_seconds

    def execute(
        self,
        operation: Callable[[], T],
        *,
        error_type: type[ExternalServiceError] = ExternalServiceError,
    ) -> T:
        """Execute operation with retry, wrapping the final failure in ``error_type``."""
        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self._initial_wait_seconds,
                max=self._max_wait_seconds,
            ),
            retry=retry_if_exception_type(_RETRYABLE_EXCEPTIONS),
            reraise=True,
        )

        try:
            return retryer(operation)
        except RetryError as exc:  # pragma: no cover
            root = _root_cause(exc)
            raise error_type(
                f"{self.name} failed after {self.max_attempts} attempts: {root}"
            ) from exc
        except Exception as exc:
            raise error_type(
                f"{self.name} failed after {self.max_attempts} attempts: {exc}"
            ) from exc


def _root_cause(exc: BaseException) -> str:
    """Walk the exception chain to find the root cause message."""
    current: BaseException | None = exc
    last_msg = str(exc)
    while current is not None:
        msg = str(current).strip()
        if msg:
            last_msg = msg
        current = current.__cause__ or current.__context__
        if current is exc:
            break
    return last_msg

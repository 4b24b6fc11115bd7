"""OpenAI-backed structured-output client."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, cast

import openai
from openai import OpenAI

from config import AppConfig
from services.resilience import ExternalServiceError, ResiliencePolicy
from services.validator import MalformedOutputError, extract_json_payload

logger = logging.getLogger(__name__)


class ProviderError(ExternalServiceError):
    """Raised for network, auth, rate-limit or model availability failures."""


@dataclass(frozen=True)
class LLMResult:
    """Normalized structured LLM response."""

    model: str
    content: str
    finish_reason: str | None
    payload: dict[str, Any]
    raw_response: dict[str, Any]


class LLMClient:
    """Chat-completions client with JSON-schema responses, retry and model fallback."""

    def __init__(self, config: AppConfig, *, timeout_seconds: float | None = None) -> None:
        self._config = config
        self._client = OpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            timeout=timeout_seconds or config.llm_timeout_seconds,
            max_retries=0,
        )
        self._resilience = ResiliencePolicy(
            name="openai_chat",
            max_attempts=config.max_external_retries,
        )

    def complete_json(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, object],
        schema_name: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResult:
        """Request a schema-constrained JSON object, falling back once if the model is unavailable."""
        try:
            return self._complete(
                model=model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                schema=schema,
                schema_name=schema_name,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except ProviderError as exc:
            fallback = self._config.fallback_model
            if not _is_model_unavailable(exc) or fallback == model:
                raise
            logger.warning("Model %s not available, falling back to %s", model, fallback)
            return self._complete(
                model=fallback,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                schema=schema,
                schema_name=schema_name,
                temperature=temperature,
                max_tokens=max_tokens,
            )

    def _complete(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, object],
        schema_name: str,
        temperature: float | None,
        max_tokens: int | None,
    ) -> LLMResult:
        def _operation() -> Any:
            messages = cast(
                Any,
                [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
            options: dict[str, Any] = {}
            if temperature is not None:
                options["temperature"] = temperature
            if max_tokens is not None:
                options["max_completion_tokens"] = max_tokens

            return self._client.chat.completions.create(
                model=model,
                messages=messages,
                response_format=cast(
                    Any,
                    {
                        "type": "json_schema",
                        "json_schema": {
                            "name": schema_name,
                            "schema": schema,
                            "strict": True,
                        },
                    },
                ),
                **options,
            )

        logger.info(
            "Calling OpenAI for %s with model: %s (prompt length: %d characters)",
            schema_name,
            model,
            len(user_prompt),
        )
        started = time.monotonic()
        response = self._resilience.execute(_operation, error_type=ProviderError)
        logger.info("%s request (%s) took %.2fs", schema_name, model, time.monotonic() - started)
        return _normalize_response(model=model, response=response)


def _normalize_response(*, model: str, response: Any) -> LLMResult:
    raw_dict = (
        response.model_dump() if hasattr(response, "model_dump") else _coerce_to_dict(response)
    )
    content = _extract_content(response)
    finish_reason = _extract_finish_reason(response)

    if finish_reason == "length":
        raise MalformedOutputError(
            f"Response from {model} was truncated at the token limit",
            raw_output=content,
        )
    if not content:
        logger.warning(
            "LLM returned empty content for model=%s (raw keys: %s)",
            model,
            list(raw_dict.keys()) if raw_dict else "none",
        )

    try:
        payload = extract_json_payload(content)
    except MalformedOutputError as exc:
        raise MalformedOutputError(str(exc), raw_output=content) from exc

    return LLMResult(
        model=model,
        content=content,
        finish_reason=finish_reason,
        payload=payload,
        raw_response=raw_dict,
    )


def _extract_content(response: Any) -> str:
    choices = getattr(response, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    if message is None:
        return ""
    content = getattr(message, "content", "")
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)


def _extract_finish_reason(response: Any) -> str | None:
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    reason = getattr(choices[0], "finish_reason", None)
    return str(reason) if reason is not None else None


def _is_model_unavailable(exc: ProviderError) -> bool:
    cause = exc.__cause__
    if isinstance(cause, openai.NotFoundError):
        return True
    message = str(cause or exc).lower()
    return "model" in message and ("does not exist" in message or "not found" in message)


def _coerce_to_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value

    if hasattr(value, "__dict__"):
        return {k: v for k, v in vars(value).items() if not k.startswith("_")}

    try:
        return json.loads(str(value))
    except json.JSONDecodeError:
        return {"raw": str(value)}

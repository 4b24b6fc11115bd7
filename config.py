"""Centralized configuration loading for the blog email agent."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


DEFAULT_MODEL_STRUCTURE = "gpt-4o-mini"
DEFAULT_MODEL_COPY = "gpt-4.1"
DEFAULT_MODEL_PLAN = "o3-mini-2025-01-31"
DEFAULT_FALLBACK_MODEL = "gpt-4o-mini"

# The key is read from the first of these that is set.
_API_KEY_ENV_VARS = ("OPEN_API_KEY_CURSOR", "OPENAI_API_KEY")


@dataclass(frozen=True)
class AppConfig:
    """Typed application configuration loaded from environment variables."""

    openai_api_key: str
    openai_base_url: str | None
    model_structure: str
    model_copy: str
    model_plan: str
    fallback_model: str
    sections_dir: Path
    output_dir: Path
    brand_guidelines_path: Path
    failure_log_dir: Path
    max_external_retries: int
    request_timeout_seconds: float
    llm_timeout_seconds: float
    debug: bool


def _get_api_key() -> str:
    import os

    for name in _API_KEY_ENV_VARS:
        raw = os.environ.get(name)
        if raw and raw.strip():
            return raw.strip()
    raise ConfigError(
        f"Missing required environment variable: {' or '.join(_API_KEY_ENV_VARS)}"
    )


def _get_optional_env(name: str, default: str) -> str:
    import os

    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _parse_bool(name: str, raw: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean value for {name}: {raw!r}")


def _parse_int(name: str, raw: str, minimum: int | None = None, maximum: int | None = None) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer value for {name}: {raw!r}") from exc

    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigError(f"{name} must be <= {maximum}, got {value}")
    return value


def _parse_float(name: str, raw: str, minimum: float = 0.0) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid number value for {name}: {raw!r}") from exc

    if value <= minimum:
        raise ConfigError(f"{name} must be > {minimum}, got {value}")
    return value


@lru_cache(maxsize=1)
def get_config(load_dotenv_file: bool = True) -> AppConfig:
    """Load and cache app configuration."""
    if load_dotenv_file:
        load_dotenv()

    output_dir = Path(_get_optional_env("OUTPUT_DIR", "output"))

    return AppConfig(
        openai_api_key=_get_api_key(),
        openai_base_url=_get_optional_env("OPENAI_BASE_URL", "") or None,
        model_structure=_get_optional_env("MODEL_STRUCTURE", DEFAULT_MODEL_STRUCTURE),
        model_copy=_get_optional_env("MODEL_COPY", DEFAULT_MODEL_COPY),
        model_plan=_get_optional_env("MODEL_PLAN", DEFAULT_MODEL_PLAN),
        fallback_model=_get_optional_env("FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL),
        sections_dir=Path(_get_optional_env("SECTIONS_DIR", "sections")),
        output_dir=output_dir,
        brand_guidelines_path=Path(
            _get_optional_env("BRAND_GUIDELINES_PATH", "brand-guidelines.md")
        ),
        failure_log_dir=Path(
            _get_optional_env("FAILURE_LOG_DIR", str(output_dir / "failures"))
        ),
        max_external_retries=_parse_int(
            "MAX_EXTERNAL_RETRIES",
            _get_optional_env("MAX_EXTERNAL_RETRIES", "2"),
            minimum=1,
            maximum=2,
        ),
        request_timeout_seconds=_parse_float(
            "REQUEST_TIMEOUT_SECONDS",
            _get_optional_env("REQUEST_TIMEOUT_SECONDS", "30"),
        ),
        llm_timeout_seconds=_parse_float(
            "LLM_TIMEOUT_SECONDS",
            _get_optional_env("LLM_TIMEOUT_SECONDS", "180"),
        ),
        debug=_parse_bool("DEBUG", _get_optional_env("DEBUG", "false")),
    )


def reset_config_cache() -> None:
    """Clear memoized configuration for tests and process reloads."""
    get_config.cache_clear()

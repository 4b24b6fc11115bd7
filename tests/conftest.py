"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from config import AppConfig

SHIPPED_SECTIONS_DIR = Path(__file__).resolve().parent.parent / "sections"


@pytest.fixture
def sections_dir() -> Path:
    return SHIPPED_SECTIONS_DIR


@pytest.fixture
def app_config(tmp_path: Path, sections_dir: Path) -> AppConfig:
    brand_path = tmp_path / "brand-guidelines.md"
    brand_path.write_text("# Brand\nFriendly, practical campervan electrics.\n", encoding="utf-8")
    return AppConfig(
        openai_api_key="sk-test",
        openai_base_url=None,
        model_structure="gpt-4o-mini",
        model_copy="gpt-4.1",
        model_plan="o3-mini-2025-01-31",
        fallback_model="gpt-4o-mini",
        sections_dir=sections_dir,
        output_dir=tmp_path / "output",
        brand_guidelines_path=brand_path,
        failure_log_dir=tmp_path / "failures",
        max_external_retries=2,
        request_timeout_seconds=5.0,
        llm_timeout_seconds=10.0,
        debug=False,
    )

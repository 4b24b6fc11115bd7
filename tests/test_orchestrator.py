"""Tests for end-to-end pipeline orchestration."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from config import AppConfig, ConfigError
from models import ContentSource, SectionId
from services.composition import CompositionFailure
from services.links import LINK_DIRECTORY
from services.llm import LLMResult
from services.observability import LogContext, StructuredLogger
from services.orchestrator import EmailPipeline
from services.planner import SinglePassPlanner, StructurePlanner
from services.renderer import EmailAssembler
from services.retriever import ContentRetriever
from services.sections import SectionTemplateStore
from services.writer import CopyWriter

STRUCTURE = {
    "sequence": ["hero", "simple_body", "six_summary_cards", "footer"],
    "email_goal": "educational",
    "use_summary_cards": True,
    "reasoning": "Tutorial content",
}

SLOTS = {
    "hero": {
        "title": "Solar in winter",
        "subtitle": "Short days, full batteries.",
        "cta_text": "Read the guide",
        "cta_url": "https://not-approved.example",
    },
    "simple_body": [{"html": "<p>Angle your panels for the low sun.</p>"}],
    "six_summary_cards": [
        {"title": f"Tip {index}", "description": f"Winter tip {index}.", "emoji": "☀️"}
        for index in range(6)
    ],
    "book_a_call": {},
    "contact": {},
    "signature": {},
    "footer": {},
}


class _ScriptedLLM:
    """Return canned payloads keyed by schema name."""

    def __init__(self, payloads: dict[str, Any]) -> None:
        self._payloads = payloads
        self.schema_names: list[str] = []

    def complete_json(self, **kwargs: Any) -> LLMResult:
        schema_name = kwargs["schema_name"]
        self.schema_names.append(schema_name)
        payload = self._payloads[schema_name]
        return LLMResult(
            model=kwargs["model"],
            content=json.dumps(payload),
            finish_reason="stop",
            payload=payload,
            raw_response={},
        )


class _RecordingLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def info(self, event: str, *, context: Any = None, **fields: Any) -> None:
        self.events.append(("info", event, {"stage": getattr(context, "stage", None), **fields}))

    def error(self, event: str, *, context: Any = None, **fields: Any) -> None:
        self.events.append(("error", event, fields))


def _pipeline(config: AppConfig, llm: _ScriptedLLM, logger: _RecordingLogger) -> EmailPipeline:
    store = SectionTemplateStore(config.sections_dir)
    return EmailPipeline(
        config=config,
        retriever=ContentRetriever(config),
        structure_planner=StructurePlanner(config, llm),  # type: ignore[arg-type]
        copy_writer=CopyWriter(config, llm),  # type: ignore[arg-type]
        plan_planner=SinglePassPlanner(config, llm),  # type: ignore[arg-type]
        template_store=store,
        assembler=EmailAssembler(store),
        logger=logger,  # type: ignore[arg-type]
    )


def _text_source() -> ContentSource:
    return ContentSource(text="Winter Solar\nPanels still charge in winter if you angle them.")


def test_two_stage_run_writes_artifacts(app_config: AppConfig) -> None:
    llm = _ScriptedLLM(
        {
            "email_structure": STRUCTURE,
            "email_copy": {"subject": "Solar that works in winter", "preview": "Six fixes", "slots": SLOTS},
        }
    )
    logger = _RecordingLogger()

    result = _pipeline(app_config, llm, logger).run(_text_source())

    assert llm.schema_names == ["email_structure", "email_copy"]
    assert result.sequence == ["hero", "simple-body", "six-summary-cards", "signature", "footer"]
    assert result.html_path.exists()
    assert result.text_path.exists()
    assert result.html_path.parent == app_config.output_dir
    assert result.html_path.name.startswith("solar-that-works-in-winter-")
    assert LINK_DIRECTORY["blog"] in result.html
    assert "not-approved.example" not in result.html
    assert "<title>Solar that works in winter</title>" in result.html
    assert "Angle your panels for the low sun." in result.text_version

    stages = [fields["stage"] for _, event, fields in logger.events if event == "stage_completed"]
    assert stages == ["retrieve", "structure", "copy", "assemble", "write"]
    assert logger.events[-1][1] == "run_completed"


def test_single_pass_run_uses_plan_stage(app_config: AppConfig) -> None:
    plan = {
        "subject": "Book your build call",
        "preview": "Talk to an engineer",
        "sequence": ["hero", "simple_body", "book_a_call", "footer"],
        "slots": {**SLOTS, "six_summary_cards": []},
    }
    llm = _ScriptedLLM({"email_plan": plan})
    logger = _RecordingLogger()

    result = _pipeline(app_config, llm, logger).run(_text_source(), single_pass=True)

    assert llm.schema_names == ["email_plan"]
    assert SectionId.SIX_SUMMARY_CARDS not in result.sequence
    assert result.sequence == ["hero", "simple-body", "book-a-call", "signature", "footer"]
    assert LINK_DIRECTORY["book_call"] in result.html


def test_malformed_copy_fails_without_artifacts(app_config: AppConfig) -> None:
    llm = _ScriptedLLM(
        {"email_structure": STRUCTURE, "email_copy": {"subject": "", "preview": "", "slots": SLOTS}}
    )
    logger = _RecordingLogger()

    with pytest.raises(CompositionFailure):
        _pipeline(app_config, llm, logger).run(_text_source())

    assert not app_config.output_dir.exists()
    level, event, fields = logger.events[-1]
    assert (level, event) == ("error", "run_failed")
    assert fields["error_type"] == "CompositionFailure"


def test_missing_brand_guidelines_is_fatal(app_config: AppConfig, tmp_path: Path) -> None:
    config = replace(app_config, brand_guidelines_path=tmp_path / "missing.md")
    llm = _ScriptedLLM({})

    with pytest.raises(ConfigError, match="brand guidelines"):
        _pipeline(config, llm, _RecordingLogger()).run(_text_source())

    assert llm.schema_names == []


def test_structured_logger_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="blog_email_agent"):
        StructuredLogger().info("run_started", context=LogContext(run_id="r1", stage="retrieve"), mode="x")

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "run_started"
    assert payload["run_id"] == "r1"
    assert payload["stage"] == "retrieve"
    assert payload["level"] == "info"
    assert payload["mode"] == "x"
    assert set(payload) == {"timestamp", "level", "event", "run_id", "stage", "mode"}

"""Tests for the section catalog and template store."""

from __future__ import annotations

from pathlib import Path

import pytest

from models import SectionId
from services.sections import (
    SECTION_CATALOG,
    SectionTemplateStore,
    default_slot,
    describe_sections,
)


def test_catalog_covers_every_section() -> None:
    assert set(SECTION_CATALOG) == set(SectionId)


def test_shipped_templates_match_catalog(sections_dir: Path) -> None:
    store = SectionTemplateStore(sections_dir)

    assert store.available_sections() == sorted(section.value for section in SectionId)


def test_available_sections_excludes_wrapper(tmp_path: Path) -> None:
    (tmp_path / "hero.html").write_text("<h1>Hi</h1>", encoding="utf-8")
    (tmp_path / "email-wrapper-start.html").write_text("<html>", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    assert SectionTemplateStore(tmp_path).available_sections() == ["hero"]


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        SectionTemplateStore(tmp_path / "missing").available_sections()


def test_load_missing_template_returns_empty(tmp_path: Path) -> None:
    assert SectionTemplateStore(tmp_path).load("hero") == ""


def test_render_wrapper_escapes_subject(tmp_path: Path) -> None:
    (tmp_path / "email-wrapper-start.html").write_text(
        "<title>{{ subject }}</title><div>{{ preview }}</div>", encoding="utf-8"
    )
    (tmp_path / "email-wrapper-end.html").write_text("</html>", encoding="utf-8")

    start, end = SectionTemplateStore(tmp_path).render_wrapper(
        subject="Volts & Amps", preview="Read <this>"
    )

    assert start == "<title>Volts &amp; Amps</title><div>Read &lt;this&gt;</div>"
    assert end == "</html>"


def test_default_slot_is_a_fresh_copy() -> None:
    first = default_slot("simple-body")
    first.append({"html": "<p>x</p>"})

    assert default_slot("simple-body") == []


def test_describe_sections_includes_category() -> None:
    lines = describe_sections(["hero", "custom-block"])

    assert lines[0].startswith("- hero [General]: Hero banner")
    assert lines[1] == "- custom-block"

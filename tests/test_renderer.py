"""Tests for section assembly and plain-text rendering."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from models import EmailPlan
from services.renderer import EmailAssembler, html_to_text
from services.sections import SectionTemplateStore, default_slot


def _plan(**slots: object) -> EmailPlan:
    filled = {
        key: default_slot(key)
        for key in ("hero", "simple-body", "six-summary-cards", "book-a-call", "contact", "signature", "footer")
    }
    filled.update({key.replace("_", "-"): value for key, value in slots.items()})
    sequence = ["hero", "simple-body", "signature", "footer"]
    if filled["six-summary-cards"]:
        sequence.insert(2, "six-summary-cards")
    return EmailPlan(subject="Wire it right", preview="Six checks", sequence=sequence, slots=filled)


def test_hero_copy_is_spliced_into_template(sections_dir: Path) -> None:
    assembler = EmailAssembler(SectionTemplateStore(sections_dir))
    plan = _plan(
        hero={
            "title": "Power that lasts",
            "subtitle": "Plan your <strong>loads</strong> first.",
            "cta_text": "Build yours",
            "cta_url": "https://builder.vunked.com",
        }
    )

    email = assembler.assemble(plan)
    soup = BeautifulSoup(email.html, "html.parser")

    assert soup.select_one('h3 span[style*="font-weight: bold"]').get_text() == "Power that lasts"
    assert soup.find("strong", string="loads") is not None
    cta = soup.select_one(".kl-button a")
    assert cta.get_text() == "Build yours"
    assert cta["href"] == "https://builder.vunked.com"
    assert "Insert Link" not in email.html


def test_body_blocks_replace_placeholder(sections_dir: Path) -> None:
    assembler = EmailAssembler(SectionTemplateStore(sections_dir))
    plan = _plan(simple_body=[{"html": "<p>First block.</p>"}, {"html": "<p>Second block.</p>"}])

    email = assembler.assemble(plan)

    assert "First block." in email.html
    assert "Second block." in email.html
    assert "Body copy goes here." not in email.html


def test_summary_cards_fill_grid(sections_dir: Path) -> None:
    cards = [
        {"title": f"Tip\n{index}", "description": f"Check number {index}.", "emoji": "🔋"}
        for index in range(6)
    ]
    assembler = EmailAssembler(SectionTemplateStore(sections_dir))

    email = assembler.assemble(_plan(six_summary_cards=cards))
    soup = BeautifulSoup(email.html, "html.parser")
    cells = soup.select('td[width="50%"][align="center"]')

    assert len(cells) == 6
    assert cells[0].find("h3").decode_contents() == "Tip<br/>0"
    assert cells[5].select_one('p[style*="font-size: 14px"]').get_text() == "Check number 5."
    assert cells[2].select_one('span[style*="font-size: 28px"]').get_text() == "🔋"


def test_default_slots_leave_templates_untouched(sections_dir: Path) -> None:
    store = SectionTemplateStore(sections_dir)

    email = EmailAssembler(store).assemble(_plan())

    assert store.load("hero") in email.html
    assert store.load("footer") in email.html


def test_sections_are_joined_in_sequence_order_inside_wrapper(tmp_path: Path) -> None:
    (tmp_path / "email-wrapper-start.html").write_text("<html><title>{{ subject }}</title>", encoding="utf-8")
    (tmp_path / "email-wrapper-end.html").write_text("</html>", encoding="utf-8")
    (tmp_path / "signature.html").write_text("<p>SIG</p>", encoding="utf-8")
    (tmp_path / "footer.html").write_text("<p>FOOT</p>", encoding="utf-8")
    (tmp_path / "contact.html").write_text("   ", encoding="utf-8")
    plan = EmailPlan(
        subject="Hello",
        preview="P",
        sequence=["contact", "signature", "footer"],
        slots={},
    )

    email = EmailAssembler(SectionTemplateStore(tmp_path)).assemble(plan)

    assert email.html == "<html><title>Hello</title><p>SIG</p>\n\n<p>FOOT</p></html>"


def test_malformed_body_template_falls_back_to_raw(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    (tmp_path / "email-wrapper-start.html").write_text("", encoding="utf-8")
    (tmp_path / "email-wrapper-end.html").write_text("", encoding="utf-8")
    raw_template = "<table><tr><td>No text container</td></tr></table>"
    (tmp_path / "simple-body.html").write_text(raw_template, encoding="utf-8")
    plan = EmailPlan(
        subject="S",
        preview="P",
        sequence=["simple-body"],
        slots={"simple-body": [{"html": "<p>new</p>"}]},
    )

    with caplog.at_level(logging.WARNING, logger="services.renderer"):
        email = EmailAssembler(SectionTemplateStore(tmp_path)).assemble(plan)

    assert email.html == raw_template
    assert "Could not find text container" in caplog.text


def test_html_to_text_drops_images_and_link_targets() -> None:
    html = (
        "<html><head><style>p { color: red; }</style></head><body>"
        '<img src="https://cdn.example/banner.png" alt="Banner">'
        "<h1>Headline</h1>"
        '<p>Visit <a href="https://www.vunked.com">our site</a> today.</p>'
        "<ul><li>One</li><li>Two</li></ul>"
        "</body></html>"
    )

    text = html_to_text(html)

    assert "Headline" in text
    assert "Visit our site today." in text
    assert "- One" in text
    assert "https://" not in text
    assert "color: red" not in text


def test_html_to_text_wraps_long_lines() -> None:
    text = html_to_text("<p>" + "word " * 60 + "</p>")

    assert all(len(line) <= 80 for line in text.splitlines())
    assert len(text.splitlines()) > 1


def test_html_to_text_flattens_layout_tables() -> None:
    html = (
        "<!DOCTYPE html><html><body><!-- preheader -->"
        "<table><tr><td><h1>Power that lasts</h1><p>Plan before you buy.</p></td></tr>"
        "<tr><td><p>Happy building,<br><strong>The Vunked Team</strong></p></td></tr></table>"
        "</body></html>"
    )

    lines = html_to_text(html).splitlines()

    assert "# Power that lasts" in lines
    assert "Plan before you buy." in lines
    assert "The Vunked Team" in lines
    assert not any("|" in line or "preheader" in line or "**" in line for line in lines)

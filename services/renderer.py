"""Splice plan copy into section templates and build the final email."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from bs4 import BeautifulSoup, Comment, Doctype, Tag
from markdownify import markdownify

from models import AssembledEmail, EmailPlan, SectionId
from services.sections import SectionTemplateStore

logger = logging.getLogger(__name__)

TEXT_WIDTH = 80

# Reduced to their text content in the plain-text version.
_INLINE_ONLY_TAGS = ("a", "b", "strong", "em", "i", "u", "span", "font")
# Email layout tables; unwrapped so the paragraphs inside stay separate blocks.
_LAYOUT_TAGS = ("table", "thead", "tbody", "tfoot", "tr", "td", "th")
_DROPPED_TAGS = ("head", "script", "style", "img")


class EmailAssembler:
    """Render an EmailPlan into HTML and plain text from on-disk templates."""

    def __init__(self, template_store: SectionTemplateStore) -> None:
        self._templates = template_store
        self._processors: dict[str, Callable[[str, Any], str]] = {
            SectionId.HERO.value: _fill_hero,
            SectionId.SIMPLE_BODY.value: _fill_body,
            SectionId.SIX_SUMMARY_CARDS.value: _fill_summary_cards,
        }

    def assemble(self, plan: EmailPlan) -> AssembledEmail:
        fragments: list[str] = []
        for section_id in plan.sequence:
            template = self._templates.load(section_id)
            if not template.strip():
                logger.warning("Section %s is empty, skipping", section_id)
                continue
            fragments.append(self._process_section(section_id, template, plan.slots.get(section_id)))

        start, end = self._templates.render_wrapper(subject=plan.subject, preview=plan.preview)
        html = start + "\n\n".join(fragments) + end
        return AssembledEmail(
            subject=plan.subject,
            preview=plan.preview,
            html=html,
            text_version=html_to_text(html),
        )

    def _process_section(self, section_id: str, template: str, slot: Any) -> str:
        processor = self._processors.get(section_id)
        if processor is None or not _has_content(slot):
            return template
        return processor(template, slot)


def _has_content(slot: Any) -> bool:
    if isinstance(slot, dict):
        return any(slot.values())
    return bool(slot)


def _fill_hero(template: str, hero: dict[str, Any]) -> str:
    soup = BeautifulSoup(template, "html.parser")
    title_node = soup.find("h3") or soup.find("h1") or soup.find("h2")
    subtitles = soup.select('div[style*="line-height"] span[style*="font-family: Montserrat"]')
    cta_link = soup.select_one('a[href*="Insert Link"]') or soup.select_one(".kl-button a")

    if title_node is None and len(subtitles) < 2 and cta_link is None:
        logger.warning("Could not find hero elements in template, using it unchanged")
        return template

    if isinstance(title_node, Tag) and hero.get("title"):
        bold = title_node.select_one('span[style*="font-weight: bold"]')
        (bold or title_node).string = hero["title"]

    # The second Montserrat span is the subtitle; the first belongs to the title block.
    if len(subtitles) > 1 and hero.get("subtitle"):
        _replace_inner_html(subtitles[1], hero["subtitle"])

    if cta_link is not None:
        if hero.get("cta_text"):
            cta_link.string = hero["cta_text"]
        if hero.get("cta_url"):
            cta_link["href"] = hero["cta_url"]

    return str(soup)


def _fill_body(template: str, blocks: list[dict[str, Any]]) -> str:
    soup = BeautifulSoup(template, "html.parser")
    container = soup.select_one('td.kl-text div[style*="font-family"]')
    if container is None:
        logger.warning("Could not find text container in simple-body section")
        return template

    content = "".join(str(block.get("html", "")) for block in blocks if block.get("html"))
    _replace_inner_html(container, f'<div style="line-height: 120%;">{content}</div>')
    return str(soup)


def _fill_summary_cards(template: str, cards: list[dict[str, Any]]) -> str:
    soup = BeautifulSoup(template, "html.parser")
    containers = soup.select('td[width="50%"][align="center"]')
    if not containers:
        logger.warning("Could not find card containers in six-summary-cards section")
        return template

    if len(cards) > len(containers):
        logger.warning(
            "Template has %d card slots, dropping %d extra cards",
            len(containers),
            len(cards) - len(containers),
        )

    for container, card in zip(containers, cards):
        emoji = container.select_one('span[style*="font-size: 28px"]')
        if emoji is not None and card.get("emoji"):
            emoji.string = card["emoji"]

        title = container.find("h3")
        if isinstance(title, Tag) and card.get("title"):
            title.clear()
            for index, line in enumerate(str(card["title"]).split("\n")):
                if index:
                    title.append(soup.new_tag("br"))
                title.append(line)

        description = container.select_one('p[style*="font-size: 14px"]')
        if description is not None and card.get("description"):
            description.string = card["description"]

    return str(soup)


def _replace_inner_html(node: Tag, html: str) -> None:
    node.clear()
    fragment = BeautifulSoup(html, "html.parser")
    for child in list(fragment.contents):
        node.append(child.extract())


def html_to_text(html: str) -> str:
    """Lossy plain-text rendering: images dropped, links reduced to their text."""
    soup = BeautifulSoup(html, "html.parser")
    for node in soup.find_all(string=lambda value: isinstance(value, (Comment, Doctype))):
        node.extract()
    for tag in soup.find_all(list(_DROPPED_TAGS)):
        if not tag.decomposed:
            tag.decompose()
    for tag in soup.find_all(list(_LAYOUT_TAGS)):
        tag.unwrap()

    text = markdownify(
        str(soup),
        heading_style="atx",
        bullets="-",
        strip=list(_INLINE_ONLY_TAGS),
        escape_asterisks=False,
        escape_underscores=False,
        wrap=True,
        wrap_width=TEXT_WIDTH,
    )

    lines = [line.rstrip() for line in text.splitlines()]
    text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
    return text.strip() + "\n"

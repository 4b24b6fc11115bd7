"""Section catalog, slot key mapping and on-disk template store."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from models import SectionCatalogEntry, SectionCategory, SectionId

logger = logging.getLogger(__name__)

WRAPPER_START = "email-wrapper-start.html"
WRAPPER_END = "email-wrapper-end.html"
_WRAPPER_PREFIX = "email-wrapper"


SECTION_CATALOG: dict[SectionId, SectionCatalogEntry] = {
    entry.id: entry
    for entry in (
        SectionCatalogEntry(
            id=SectionId.HERO,
            category=SectionCategory.GENERAL,
            summary="Hero banner with headline, supporting copy, and CTA. Always the first section.",
        ),
        SectionCatalogEntry(
            id=SectionId.SIMPLE_BODY,
            category=SectionCategory.EDUCATIONAL,
            summary="Flexible content blocks for storytelling, guides, and updates. Use 2-4 per email.",
        ),
        SectionCatalogEntry(
            id=SectionId.SIX_SUMMARY_CARDS,
            category=SectionCategory.EDUCATIONAL,
            summary=(
                "Six-card grid for summarising key takeaways. Use when content is an "
                "educational guide or insights list."
            ),
        ),
        SectionCatalogEntry(
            id=SectionId.SELLING_POINTS,
            category=SectionCategory.PRODUCT,
            summary=(
                "Three benefit cards that spotlight what customers receive. Ideal for "
                "product launches, offers, or kit promotions."
            ),
        ),
        SectionCatalogEntry(
            id=SectionId.SOCIAL_PROOF,
            category=SectionCategory.SOCIAL_PROOF,
            summary=(
                "Community spotlight cards featuring social posts. Use to build trust "
                "or highlight real installations."
            ),
        ),
        SectionCatalogEntry(
            id=SectionId.BOOK_A_CALL,
            category=SectionCategory.GENERAL_CTA,
            summary=(
                "Consultation CTA for readers ready to speak with the team. Place near "
                "the end for sales-oriented emails."
            ),
        ),
        SectionCatalogEntry(
            id=SectionId.CONTACT,
            category=SectionCategory.GENERAL,
            summary="Standard contact information block. Include when closing with next steps or support.",
        ),
        SectionCatalogEntry(
            id=SectionId.SIGNATURE,
            category=SectionCategory.GENERAL,
            summary="Friendly sign-off from the team. Always place before the footer.",
        ),
        SectionCatalogEntry(
            id=SectionId.FOOTER,
            category=SectionCategory.GENERAL,
            summary="Legal footer with company info and unsubscribe links. Always the final section.",
        ),
    )
}

# Model-facing slot keys -> template ids.
SLOT_KEY_MAP: dict[str, str] = {
    "hero": SectionId.HERO.value,
    "simple_body": SectionId.SIMPLE_BODY.value,
    "six_summary_cards": SectionId.SIX_SUMMARY_CARDS.value,
    "book_a_call": SectionId.BOOK_A_CALL.value,
    "contact": SectionId.CONTACT.value,
    "signature": SectionId.SIGNATURE.value,
    "footer": SectionId.FOOTER.value,
}

DEFAULT_SLOTS: dict[str, Any] = {
    SectionId.HERO.value: {"title": "", "subtitle": "", "cta_text": "", "cta_url": ""},
    SectionId.SIMPLE_BODY.value: [],
    SectionId.SIX_SUMMARY_CARDS.value: [],
    SectionId.BOOK_A_CALL.value: {},
    SectionId.FOOTER.value: {},
    SectionId.CONTACT.value: {},
    SectionId.SIGNATURE.value: {},
}


def default_slot(section_id: str) -> Any:
    """Return a fresh empty payload for a known slot."""
    return copy.deepcopy(DEFAULT_SLOTS[section_id])


def describe_sections(available_sections: list[str]) -> list[str]:
    """Render catalog lines for the structure prompt."""
    lines: list[str] = []
    for name in available_sections:
        entry = SECTION_CATALOG.get(name)  # type: ignore[call-overload]
        if entry is None:
            lines.append(f"- {name}")
            continue
        lines.append(f"- {name} [{entry.category}]: {entry.summary}")
    return lines


class SectionTemplateStore:
    """Read section fragments and the email wrapper from a directory."""

    def __init__(self, sections_dir: Path) -> None:
        self._sections_dir = sections_dir
        self._environment = Environment(
            loader=FileSystemLoader(str(sections_dir)),
            autoescape=select_autoescape(enabled_extensions=("html", "xml")),
            keep_trailing_newline=True,
        )

    @property
    def sections_dir(self) -> Path:
        return self._sections_dir

    def available_sections(self) -> list[str]:
        """List section ids that have a template, excluding the wrapper files."""
        if not self._sections_dir.is_dir():
            raise FileNotFoundError(f"Sections directory not found: {self._sections_dir}")
        return sorted(
            path.stem
            for path in self._sections_dir.glob("*.html")
            if not path.stem.startswith(_WRAPPER_PREFIX)
        )

    def load(self, section_id: str) -> str:
        """Return the raw template, or an empty string when it is missing."""
        path = self._sections_dir / f"{section_id}.html"
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not read section %s: %s", section_id, exc)
            return ""

    def render_wrapper(self, *, subject: str, preview: str) -> tuple[str, str]:
        """Render the wrapper open/close fragments with subject and preview text."""
        context = {"subject": subject, "preview": preview}
        start = self._environment.get_template(WRAPPER_START).render(**context)
        end = self._environment.get_template(WRAPPER_END).render(**context)
        return start, end

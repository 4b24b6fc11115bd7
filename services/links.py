"""Approved link directory and hero CTA enforcement."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from bs4 import BeautifulSoup

from models import SectionId

logger = logging.getLogger(__name__)

LINK_DIRECTORY = MappingProxyType(
    {
        "builder": "https://builder.vunked.com",
        "book_call": "https://cal.com/vunked/free-campervan-electrics-consultation-email",
        "homepage": "https://www.vunked.com",
        "blog": "https://vunked.com/blog",
    }
)

ALLOWED_LINKS = frozenset(LINK_DIRECTORY.values())
_ALLOWED_HREFS = frozenset(link.rstrip("/") for link in ALLOWED_LINKS)


@dataclass(frozen=True)
class LinkContext:
    """Inputs to the fallback link decision."""

    sequence: tuple[str, ...]
    email_goal: str = ""


def resolve_link(key: str) -> str:
    """Resolve an approved link by logical key."""
    try:
        return LINK_DIRECTORY[key]
    except KeyError:
        raise KeyError(f"Unknown link key: {key}") from None


def select_fallback_link(context: LinkContext) -> str:
    goal = context.email_goal.lower()

    if SectionId.BOOK_A_CALL in context.sequence or "consult" in goal:
        return resolve_link("book_call")

    if SectionId.SELLING_POINTS in context.sequence or any(
        word in goal for word in ("product", "promo", "sale")
    ):
        return resolve_link("builder")

    if any(word in goal for word in ("educat", "guide", "blog")):
        return resolve_link("blog")

    return resolve_link("homepage")


def enforce_hero_link(hero_slot: dict[str, Any], context: LinkContext) -> dict[str, Any]:
    """Return the hero slot with ``cta_url`` guaranteed to be an approved link."""
    cta_url = hero_slot.get("cta_url")
    if isinstance(cta_url, str) and cta_url in ALLOWED_LINKS:
        return hero_slot

    fallback = select_fallback_link(context)
    logger.warning("Hero CTA URL %r is not approved. Using fallback: %s", cta_url, fallback)
    return {**hero_slot, "cta_url": fallback}


def find_unapproved_links(blocks: Sequence[dict[str, Any]]) -> list[str]:
    """List hrefs in body HTML blocks that are outside the approved directory.

    Body links are reported only; they are not rewritten.
    """
    unapproved: list[str] = []
    for block in blocks:
        soup = BeautifulSoup(str(block.get("html", "")), "html.parser")
        for anchor in soup.find_all("a"):
            href = str(anchor.get("href", "")).strip()
            if href and href.rstrip("/") not in _ALLOWED_HREFS:
                unapproved.append(href)
    return unapproved

"""Core typed models used across the email pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class InputError(ValueError):
    """Raised when the content source is missing or ambiguous."""


class SectionId(StrEnum):
    """Section identifiers with a shipped template."""

    HERO = "hero"
    SIMPLE_BODY = "simple-body"
    SIX_SUMMARY_CARDS = "six-summary-cards"
    SELLING_POINTS = "selling-points-what-you-get"
    SOCIAL_PROOF = "social-media-van-conversions"
    BOOK_A_CALL = "book-a-call"
    CONTACT = "contact"
    SIGNATURE = "signature"
    FOOTER = "footer"


class SectionCategory(StrEnum):
    """Catalog grouping shown to the structure model."""

    GENERAL = "General"
    EDUCATIONAL = "Educational"
    PRODUCT = "Product"
    SOCIAL_PROOF = "Social Proof"
    GENERAL_CTA = "General CTA"


@dataclass(frozen=True)
class ContentSource:
    """Exactly one of url, text or prompt."""

    url: str | None = None
    text: str | None = None
    prompt: str | None = None

    def __post_init__(self) -> None:
        provided = [name for name in ("url", "text", "prompt") if getattr(self, name)]
        if not provided:
            raise InputError("Must specify one of: url, text, or prompt")
        if len(provided) > 1:
            raise InputError(f"Content sources are mutually exclusive, got: {', '.join(provided)}")


@dataclass(frozen=True)
class BlogContent:
    """Canonical blog record produced by retrieval."""

    title: str
    text: str
    source_url: str | None = None


@dataclass(frozen=True)
class SectionCatalogEntry:
    """Static metadata describing one section template."""

    id: SectionId
    category: SectionCategory
    summary: str


@dataclass
class StructureDecision:
    """Section selection produced by the structure stage."""

    sequence: list[str]
    email_goal: str
    use_summary_cards: bool
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": list(self.sequence),
            "email_goal": self.email_goal,
            "use_summary_cards": self.use_summary_cards,
            "reasoning": self.reasoning,
        }


@dataclass
class EmailPlan:
    """Invariant-satisfying plan ready for assembly.

    ``slots`` maps hyphenated section ids to JSON-like payloads: a dict for
    ``hero`` and the static sections, a list of blocks for ``simple-body`` and
    a list of cards for ``six-summary-cards``.
    """

    subject: str
    preview: str
    sequence: list[str]
    slots: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "preview": self.preview,
            "sequence": list(self.sequence),
            "slots": self.slots,
        }


@dataclass(frozen=True)
class AssembledEmail:
    """Final HTML email and its plain-text companion."""

    subject: str
    preview: str
    html: str
    text_version: str

"""Slot copy generation for a chosen section structure."""

from __future__ import annotations

import logging
from typing import Any

from config import AppConfig
from models import BlogContent, EmailPlan, SectionId, StructureDecision
from services.composition import run_composition_stage
from services.links import LINK_DIRECTORY, LinkContext, enforce_hero_link, find_unapproved_links
from services.llm import LLMClient
from services.normalizer import normalize_plan
from services.schemas import COPY_SCHEMA
from services.validator import ContentValidationError, MalformedOutputError

logger = logging.getLogger(__name__)

_COPY_BLOG_CHARS = 3500
_COPY_BRAND_CHARS = 2500

COPY_SYSTEM_PROMPT = (
    "You are an expert email copywriter. Write engaging, on-brand email content "
    "that drives action."
)

SLOT_FORMAT_GUIDE = (
    "## Slot Formats\n"
    "- hero: {title, subtitle, cta_text, cta_url}. Title under 60 characters, "
    "subtitle one or two sentences, cta_text 2-4 words.\n"
    "- simple_body: 2-4 blocks of {html}. Use <p>, <strong>, <ul>/<li> only; "
    "no inline styles, no <h1>/<h2>.\n"
    "- six_summary_cards: exactly 6 cards of {title, description, emoji} when used. "
    "Titles 2-5 words, descriptions one sentence, a single relevant emoji.\n"
    "- book_a_call, contact, signature, footer: always {} (static content).\n"
)


def approved_links_block() -> str:
    """Render the approved link directory for a model prompt."""
    lines = [
        f"- {key.replace('_', ' ').title()}: {url}" for key, url in LINK_DIRECTORY.items()
    ]
    return (
        "## Approved Links\n"
        "Use ONLY these URLs for the hero cta_url and any links in body copy:\n"
        + "\n".join(lines)
        + "\n\n"
        "Choose the CTA by intent: builder for build or system content, book call for "
        "consultations, homepage for general announcements, blog for educational posts.\n"
    )


def log_plan(plan: EmailPlan) -> None:
    hero = plan.slots.get(SectionId.HERO, {})
    logger.info("Subject: %s", plan.subject)
    logger.info("Preview: %s", plan.preview)
    logger.info("Sequence: %s", " -> ".join(plan.sequence))
    logger.info("Hero CTA: %s -> %s", hero.get("cta_text", ""), hero.get("cta_url", ""))
    logger.info("Body blocks: %d", len(plan.slots.get(SectionId.SIMPLE_BODY, [])))
    cards = plan.slots.get(SectionId.SIX_SUMMARY_CARDS, [])
    if cards:
        logger.info("Summary cards: %d", len(cards))


class CopyWriter:
    """Write subject, preview and slot content for an already-chosen structure."""

    def __init__(self, config: AppConfig, llm_client: LLMClient) -> None:
        self._config = config
        self._llm_client = llm_client

    def generate_copy(
        self,
        *,
        structure: StructureDecision,
        blog: BlogContent,
        brand_guidelines: str,
        available_sections: list[str],
        model: str | None = None,
    ) -> EmailPlan:
        """Generate copy and return a normalized plan with an approved hero link.

        The structure's sequence is kept; whether the summary cards survive is
        decided by the card payload the model returns.
        """
        model_name = model or self._config.model_copy
        prompt = self._build_prompt(structure, blog, brand_guidelines)

        def _operation() -> EmailPlan:
            result = self._llm_client.complete_json(
                model=model_name,
                system_prompt=COPY_SYSTEM_PROMPT,
                user_prompt=prompt,
                schema=COPY_SCHEMA,
                schema_name="email_copy",
                temperature=0.7,
                max_tokens=8000,
            )
            raw_plan: dict[str, Any] = {
                "subject": result.payload.get("subject"),
                "preview": result.payload.get("preview"),
                "sequence": list(structure.sequence),
                "slots": result.payload.get("slots"),
            }
            try:
                return normalize_plan(raw_plan, available_sections)
            except ContentValidationError as exc:
                raise MalformedOutputError(str(exc), raw_output=result.content) from exc

        plan = run_composition_stage(
            stage="copy",
            failure_dir=self._config.failure_log_dir,
            input_payload={
                "title": blog.title,
                "model": model_name,
                "structure": structure.to_dict(),
            },
            operation=_operation,
        )

        plan.slots[SectionId.HERO.value] = enforce_hero_link(
            plan.slots[SectionId.HERO],
            LinkContext(sequence=tuple(plan.sequence), email_goal=structure.email_goal),
        )
        unapproved = find_unapproved_links(plan.slots[SectionId.SIMPLE_BODY])
        if unapproved:
            logger.warning("Body copy links outside the approved list: %s", ", ".join(unapproved))

        log_plan(plan)
        return plan

    def _build_prompt(
        self,
        structure: StructureDecision,
        blog: BlogContent,
        brand_guidelines: str,
    ) -> str:
        source_line = f"\n**Source URL:** {blog.source_url}" if blog.source_url else ""
        blog_text = blog.text[:_COPY_BLOG_CHARS]
        if len(blog.text) > _COPY_BLOG_CHARS:
            blog_text += "..."
        wants_cards = SectionId.SIX_SUMMARY_CARDS in structure.sequence
        cards_rule = (
            "Include exactly 6 six_summary_cards summarising the key takeaways."
            if wants_cards
            else "The structure has no six-summary-cards section: return six_summary_cards as []."
        )
        return (
            "# Task: Write Email Copy\n\n"
            "Write the copy for each section of an email whose structure is already decided.\n\n"
            "## Email Structure\n"
            f"**Goal:** {structure.email_goal}\n"
            f"**Sections:** {' -> '.join(structure.sequence)}\n"
            f"**Reasoning:** {structure.reasoning}\n\n"
            "## Blog Content\n"
            f"**Title:** {blog.title}{source_line}\n\n"
            "**Content:**\n"
            f"{blog_text}\n\n"
            "## Brand Guidelines\n"
            f"{brand_guidelines[:_COPY_BRAND_CHARS]}\n\n"
            f"{approved_links_block()}\n"
            f"{SLOT_FORMAT_GUIDE}\n"
            f"{cards_rule}\n\n"
            "Write the subject line, preview text and slot content as JSON matching the schema."
        )

"""Section structure and single-pass plan generation."""

from __future__ import annotations

import logging

from config import AppConfig
from models import BlogContent, EmailPlan, StructureDecision
from services.composition import run_composition_stage
from services.links import LinkContext, enforce_hero_link
from services.llm import LLMClient
from services.normalizer import normalize_plan, normalize_structure
from services.schemas import PLAN_SCHEMA, STRUCTURE_SCHEMA
from services.sections import describe_sections
from services.validator import ContentValidationError, MalformedOutputError
from services.writer import SLOT_FORMAT_GUIDE, approved_links_block, log_plan

logger = logging.getLogger(__name__)

_STRUCTURE_BLOG_CHARS = 1500
_STRUCTURE_BRAND_CHARS = 1000
_PLAN_BLOG_CHARS = 3000
_PLAN_BRAND_CHARS = 2000

STRUCTURE_SYSTEM_PROMPT = (
    "You are an expert email strategist. Analyze blog content and decide which "
    "email sections to use and in what order."
)

PLAN_SYSTEM_PROMPT = (
    "You are an expert email marketing strategist. Generate structured email plans "
    "in JSON format based on blog content and brand guidelines."
)

SECTION_CATEGORY_GUIDE = (
    "### Section Categories\n"
    "- **Educational:** guides, how-tos, technical explainers, multi-step stories.\n"
    "- **Product:** offers, benefits, kits, reasons to buy.\n"
    "- **Social Proof:** customer success, community builds, testimonials.\n"
    "- **General / Always-On:** hero, signature, footer, contact frame the narrative.\n"
)

SEQUENCE_RULES = (
    "## Rules\n"
    "- ALWAYS start with 'hero'\n"
    "- ALWAYS end with 'signature' followed by 'footer'\n"
    "- 'simple-body' should always be included for main content\n"
    "- Use 'six-summary-cards' ONLY for educational/blog content, NOT for sales/promotions\n"
    "- Use 'selling-points-what-you-get' for product launches, offers, or kit promotions\n"
    "- Use 'social-media-van-conversions' to showcase community builds or customer success\n"
    "- Use 'book-a-call' for sales-oriented emails or consultation pushes\n"
    "- Include 'contact' for support-focused or resource-heavy emails\n"
)


def _clip(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _source_line(blog: BlogContent) -> str:
    return f"\n**Source URL:** {blog.source_url}" if blog.source_url else ""


class StructurePlanner:
    """Decide which sections an email uses and in what order."""

    def __init__(self, config: AppConfig, llm_client: LLMClient) -> None:
        self._config = config
        self._llm_client = llm_client

    def create_structure(
        self,
        *,
        blog: BlogContent,
        brand_guidelines: str,
        available_sections: list[str],
        model: str | None = None,
    ) -> StructureDecision:
        model_name = model or self._config.model_structure
        prompt = self._build_prompt(blog, brand_guidelines, available_sections)

        def _operation() -> StructureDecision:
            result = self._llm_client.complete_json(
                model=model_name,
                system_prompt=STRUCTURE_SYSTEM_PROMPT,
                user_prompt=prompt,
                schema=STRUCTURE_SCHEMA,
                schema_name="email_structure",
                temperature=0.7,
                max_tokens=1000,
            )
            try:
                return normalize_structure(result.payload, available_sections)
            except ContentValidationError as exc:
                raise MalformedOutputError(str(exc), raw_output=result.content) from exc

        structure = run_composition_stage(
            stage="structure",
            failure_dir=self._config.failure_log_dir,
            input_payload={"title": blog.title, "model": model_name, "prompt": prompt},
            operation=_operation,
        )
        logger.info("Goal: %s", structure.email_goal)
        logger.info("Sections: %s", " -> ".join(structure.sequence))
        logger.info("Reasoning: %s", structure.reasoning)
        return structure

    def _build_prompt(
        self,
        blog: BlogContent,
        brand_guidelines: str,
        available_sections: list[str],
    ) -> str:
        sections = "\n".join(describe_sections(available_sections))
        return (
            "# Task: Determine Email Structure\n\n"
            "Decide which sections to include in an email and in what order, "
            "based on the blog content.\n\n"
            "## Blog Content\n"
            f"**Title:** {blog.title}{_source_line(blog)}\n\n"
            "**Content Preview:**\n"
            f"{_clip(blog.text, _STRUCTURE_BLOG_CHARS)}\n\n"
            "## Brand Context\n"
            f"{brand_guidelines[:_STRUCTURE_BRAND_CHARS]}\n\n"
            "## Available Email Sections\n"
            f"{sections}\n\n"
            f"{SECTION_CATEGORY_GUIDE}\n"
            "## Your Task\n"
            "1. What is the primary goal of this email? (educational, promotional, mixed, "
            "announcement, etc.)\n"
            "2. Which sections should be included, and in what order?\n"
            "3. Should six-summary-cards be included? (educational/tutorial content yes, "
            "promotional/sales no)\n\n"
            f"{SEQUENCE_RULES}\n"
            "Return your decision as JSON."
        )


class SinglePassPlanner:
    """Produce subject, preview, sequence and slot copy in one model call."""

    def __init__(self, config: AppConfig, llm_client: LLMClient) -> None:
        self._config = config
        self._llm_client = llm_client

    def create_plan(
        self,
        *,
        blog: BlogContent,
        brand_guidelines: str,
        available_sections: list[str],
        model: str | None = None,
    ) -> EmailPlan:
        model_name = model or self._config.model_plan
        prompt = self._build_prompt(blog, brand_guidelines, available_sections)

        def _operation() -> EmailPlan:
            result = self._llm_client.complete_json(
                model=model_name,
                system_prompt=PLAN_SYSTEM_PROMPT,
                user_prompt=prompt,
                schema=PLAN_SCHEMA,
                schema_name="email_plan",
            )
            try:
                return normalize_plan(result.payload, available_sections)
            except ContentValidationError as exc:
                raise MalformedOutputError(str(exc), raw_output=result.content) from exc

        plan = run_composition_stage(
            stage="plan",
            failure_dir=self._config.failure_log_dir,
            input_payload={"title": blog.title, "model": model_name, "prompt": prompt},
            operation=_operation,
        )
        plan.slots["hero"] = enforce_hero_link(
            plan.slots["hero"],
            LinkContext(sequence=tuple(plan.sequence)),
        )
        log_plan(plan)
        return plan

    def _build_prompt(
        self,
        blog: BlogContent,
        brand_guidelines: str,
        available_sections: list[str],
    ) -> str:
        sections = "\n".join(f"- {name}" for name in available_sections)
        return (
            "# Task: Generate Email Plan\n\n"
            "Create a structured plan for an HTML email based on the blog content.\n\n"
            "## Blog Content\n"
            f"**Title:** {blog.title}{_source_line(blog)}\n\n"
            "**Content:**\n"
            f"{_clip(blog.text, _PLAN_BLOG_CHARS)}\n\n"
            "## Brand Guidelines\n"
            f"{brand_guidelines[:_PLAN_BRAND_CHARS]}\n\n"
            "## Available Email Sections\n"
            f"{sections}\n\n"
            f"{SEQUENCE_RULES}\n"
            f"{approved_links_block()}\n"
            f"{SLOT_FORMAT_GUIDE}\n"
            "The sequence array lists section file names (hero, simple-body, book-a-call, "
            "footer, ...). Slot keys use underscores (simple_body, six_summary_cards, "
            "book_a_call). Return six_summary_cards as [] when the section is not used.\n\n"
            "Generate the email plan as valid JSON matching the schema."
        )


"""JSON schemas for model responses and the plan shape boundary check."""

from __future__ import annotations

from typing import Any


def _empty_object() -> dict[str, object]:
    return {
        "type": "object",
        "properties": {},
        "required": [],
        "additionalProperties": False,
    }


_HERO_SLOT: dict[str, object] = {
    "type": "object",
    "required": ["title", "subtitle", "cta_text", "cta_url"],
    "additionalProperties": False,
    "properties": {
        "title": {"type": "string"},
        "subtitle": {"type": "string"},
        "cta_text": {"type": "string"},
        "cta_url": {"type": "string"},
    },
}

_BODY_BLOCK: dict[str, object] = {
    "type": "object",
    "required": ["html"],
    "additionalProperties": False,
    "properties": {
        "html": {"type": "string"},
    },
}

_SUMMARY_CARD: dict[str, object] = {
    "type": "object",
    "required": ["title", "description", "emoji"],
    "additionalProperties": False,
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "emoji": {"type": "string"},
    },
}

# Model-facing slot keys use underscores; see services.sections.SLOT_KEY_MAP.
_SLOTS: dict[str, object] = {
    "type": "object",
    "description": "Content for each section",
    "required": [
        "hero",
        "simple_body",
        "book_a_call",
        "footer",
        "contact",
        "signature",
        "six_summary_cards",
    ],
    "additionalProperties": False,
    "properties": {
        "hero": _HERO_SLOT,
        "simple_body": {"type": "array", "items": _BODY_BLOCK},
        "book_a_call": _empty_object(),
        "footer": _empty_object(),
        "contact": _empty_object(),
        "signature": _empty_object(),
        "six_summary_cards": {"type": "array", "items": _SUMMARY_CARD},
    },
}


STRUCTURE_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["sequence", "email_goal", "use_summary_cards", "reasoning"],
    "additionalProperties": False,
    "properties": {
        "sequence": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Ordered list of section names to include in email",
        },
        "email_goal": {
            "type": "string",
            "description": "Primary goal of this email (educational, promotional, mixed, etc.)",
        },
        "use_summary_cards": {
            "type": "boolean",
            "description": "Whether to include six-summary-cards section",
        },
        "reasoning": {
            "type": "string",
            "description": "Brief explanation of section choices",
        },
    },
}


COPY_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["subject", "preview", "slots"],
    "additionalProperties": False,
    "properties": {
        "subject": {"type": "string", "description": "Email subject line"},
        "preview": {"type": "string", "description": "Email preview text"},
        "slots": _SLOTS,
    },
}


PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["subject", "preview", "sequence", "slots"],
    "additionalProperties": False,
    "properties": {
        "subject": {"type": "string", "description": "Email subject line"},
        "preview": {"type": "string", "description": "Email preview text"},
        "sequence": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Ordered list of section names to include in email",
        },
        "slots": _SLOTS,
    },
}


def _loose(schema: dict[str, Any]) -> dict[str, Any]:
    """Drop ``required`` and ``additionalProperties`` from an object schema."""
    return {key: value for key, value in schema.items() if key not in {"required", "additionalProperties"}}


# Applied after slot keys are hyphenated.  Missing slots are defaulted later,
# so only the types of present known slots are checked.
PLAN_SHAPE_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["subject", "preview", "sequence", "slots"],
    "properties": {
        "subject": {"type": "string", "minLength": 1},
        "preview": {"type": "string", "minLength": 1},
        "sequence": {
            "type": "array",
            "minItems": 1,
            "items": {"type": "string"},
        },
        "slots": {
            "type": "object",
            "properties": {
                "hero": _loose(_HERO_SLOT),
                "simple-body": {"type": "array", "items": _loose(_BODY_BLOCK)},
                "six-summary-cards": {"type": "array", "items": _loose(_SUMMARY_CARD)},
                "book-a-call": {"type": "object"},
                "footer": {"type": "object"},
                "contact": {"type": "object"},
                "signature": {"type": "object"},
            },
        },
    },
}

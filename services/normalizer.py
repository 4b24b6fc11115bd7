"""Coerce model decisions into plans that satisfy the section ordering rules.

Both entry points rebuild the sequence instead of patching it: unknown ids are
dropped, ``hero`` and ``footer`` are placed at the ends, ``signature`` is added
before ``footer`` when missing, and ``six-summary-cards`` is placed directly
after ``simple-body`` when cards are wanted (and only then).

Recoverable irregularities are fixed and logged.  A decision that is missing
its subject, preview, sequence or slots raises :class:`PlanValidationError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from models import EmailPlan, SectionId, StructureDecision
from services.schemas import PLAN_SHAPE_SCHEMA, STRUCTURE_SCHEMA
from services.sections import DEFAULT_SLOTS, SLOT_KEY_MAP, default_slot
from services.validator import (
    ContentValidationError,
    collect_schema_errors,
    validate_json_payload,
)

logger = logging.getLogger(__name__)


class PlanValidationError(ContentValidationError):
    """Raised when a decision fails basic shape validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = tuple(errors)
        super().__init__(f"Invalid plan structure: {', '.join(errors)}")


def normalize_sequence(
    sequence: Iterable[str],
    available_sections: Iterable[str],
    *,
    want_summary_cards: bool,
) -> list[str]:
    """Return a sequence that satisfies the ordering rules."""
    available = set(available_sections)
    original = list(sequence)

    kept = [section for section in original if section in available]
    dropped = [section for section in original if section not in available]
    if dropped:
        logger.warning("Dropped unavailable sections: %s", ", ".join(dropped))

    middle = [section for section in kept if section not in (SectionId.HERO, SectionId.FOOTER)]

    if SectionId.SIGNATURE not in middle:
        middle.append(SectionId.SIGNATURE.value)
        logger.info("Added signature section before footer")

    had_cards = SectionId.SIX_SUMMARY_CARDS in middle
    if want_summary_cards and SectionId.SIX_SUMMARY_CARDS not in available:
        logger.warning("Summary cards requested but the six-summary-cards template is missing")
    elif want_summary_cards:
        if SectionId.SIMPLE_BODY in middle:
            middle = [section for section in middle if section != SectionId.SIX_SUMMARY_CARDS]
            anchor = middle.index(SectionId.SIMPLE_BODY)
            middle.insert(anchor + 1, SectionId.SIX_SUMMARY_CARDS.value)
            if not had_cards:
                logger.info("Inserted six-summary-cards after simple-body")
    elif had_cards:
        middle = [section for section in middle if section != SectionId.SIX_SUMMARY_CARDS]
        logger.info("Removed six-summary-cards from sequence")

    result = [SectionId.HERO.value, *middle, SectionId.FOOTER.value]
    if result != original:
        logger.debug("Normalized sequence: %s -> %s", original, result)
    return result


def normalize_slot_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Rename underscore slot keys to template ids in ``sequence`` and ``slots``."""
    normalized = dict(raw)

    sequence = raw.get("sequence")
    if isinstance(sequence, list):
        normalized["sequence"] = [
            SLOT_KEY_MAP.get(item, item) if isinstance(item, str) else item for item in sequence
        ]

    slots = raw.get("slots")
    if isinstance(slots, dict):
        normalized["slots"] = {SLOT_KEY_MAP.get(key, key): value for key, value in slots.items()}

    return normalized


def apply_slot_defaults(slots: dict[str, Any]) -> dict[str, Any]:
    """Fill every known slot that the model omitted with its empty payload."""
    filled = dict(slots)
    for slot_key in DEFAULT_SLOTS:
        if slot_key not in filled:
            filled[slot_key] = default_slot(slot_key)

    hero = filled[SectionId.HERO]
    missing_fields = [key for key in DEFAULT_SLOTS[SectionId.HERO] if key not in hero]
    if missing_fields:
        filled[SectionId.HERO] = {**default_slot(SectionId.HERO), **hero}
    return filled


def normalize_structure(raw: dict[str, Any], available_sections: Iterable[str]) -> StructureDecision:
    """Validate a structure response and enforce ordering with its explicit cards flag."""
    validate_json_payload(raw, STRUCTURE_SCHEMA)
    if not raw["sequence"]:
        raise PlanValidationError(["Structure must have a non-empty sequence array"])

    keyed = normalize_slot_keys(raw)
    return StructureDecision(
        sequence=normalize_sequence(
            keyed["sequence"],
            available_sections,
            want_summary_cards=raw["use_summary_cards"],
        ),
        email_goal=raw["email_goal"],
        use_summary_cards=raw["use_summary_cards"],
        reasoning=raw["reasoning"],
    )


def normalize_plan(raw: dict[str, Any], available_sections: Iterable[str]) -> EmailPlan:
    """Validate a full plan and return it with keys, slots and ordering normalized.

    Whether ``six-summary-cards`` appears is decided by its payload alone: a
    non-empty card list places it after ``simple-body``, an empty one removes
    it.  Without a ``six-summary-cards`` template the cards are cleared.
    """
    if not isinstance(raw, dict):
        raise PlanValidationError(["Plan must be a JSON object"])
    available = list(available_sections)

    keyed = normalize_slot_keys(raw)
    errors = collect_schema_errors(keyed, PLAN_SHAPE_SCHEMA)
    if errors:
        raise PlanValidationError(errors)

    slots = apply_slot_defaults(keyed["slots"])
    cards = slots[SectionId.SIX_SUMMARY_CARDS]
    want_cards = bool(cards) and SectionId.SIX_SUMMARY_CARDS in available

    sequence = normalize_sequence(
        keyed["sequence"],
        available,
        want_summary_cards=want_cards,
    )
    if not want_cards:
        slots[SectionId.SIX_SUMMARY_CARDS] = []

    return EmailPlan(
        subject=keyed["subject"],
        preview=keyed["preview"],
        sequence=sequence,
        slots=slots,
    )

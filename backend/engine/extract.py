"""
Slot extraction logic.

This module extracts trip slots from free-text user messages using the
ordered rule table in catalog.SLOT_RULES. Extraction is purely lexical:
each rule is a regex or a keyword list applied to the lower-cased message.

Merge policy:
- SCALAR slots: the first matching rule for the slot wins and replaces any
  previous value. A turn that matches nothing leaves the value untouched.
- LIST slots (interests, specific_destinations): values found this turn are
  unioned into the existing list, in first-seen order, never removing
  anything collected earlier.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from catalog import SLOT_RULES, SlotKind, SlotRule

from .state import CollectedInfo

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Result of slot extraction for a single message."""
    collected_info: CollectedInfo
    extracted_data: Dict[str, Any] = field(default_factory=dict)


def match_rule(rule: SlotRule, message_lower: str) -> Optional[str]:
    """
    Apply one rule to an already lower-cased message.

    Returns:
        The value the rule produces, or None if it does not match
    """
    if rule.pattern is not None:
        match = rule.pattern.search(message_lower)
        if match:
            return rule.transform(match.group(0))
        return None

    for keyword in rule.keywords:
        if keyword in message_lower:
            return rule.value

    return None


def extract_from_message(
    user_message: str,
    rules: Optional[List[SlotRule]] = None,
) -> Dict[str, Any]:
    """
    Run the rule table over a message.

    Returns:
        Dict of slot name -> value found this turn. SCALAR slots map to a
        string, LIST slots to a non-empty list. Slots with no match are absent.
    """
    if rules is None:
        rules = SLOT_RULES

    if not user_message or not user_message.strip():
        return {}

    message_lower = user_message.lower()
    found: Dict[str, Any] = {}

    for rule in rules:
        value = match_rule(rule, message_lower)
        if value is None:
            continue

        if rule.kind == SlotKind.LIST:
            values = found.setdefault(rule.slot, [])
            if value not in values:
                values.append(value)
        elif rule.slot not in found:
            found[rule.slot] = value

    return found


def merge_slots(current: CollectedInfo, extracted: Dict[str, Any]) -> CollectedInfo:
    """Merge one turn's findings into a copy of the current slots."""
    merged = current.copy()

    for slot_name, value in extracted.items():
        if isinstance(value, list):
            existing = getattr(merged, slot_name)
            for item in value:
                if item not in existing:
                    existing.append(item)
        else:
            setattr(merged, slot_name, value)

    return merged


def extract_slots(user_message: str, current: CollectedInfo) -> ExtractionResult:
    """
    Extract slots from a message and merge them into the current slots.

    Never raises. The input CollectedInfo is not mutated.

    Args:
        user_message: Raw user message
        current: Slots collected before this turn

    Returns:
        ExtractionResult with the merged slots and what this turn produced
    """
    extracted = extract_from_message(user_message)
    merged = merge_slots(current, extracted)

    if extracted:
        logger.info(f"Deterministic extraction: {extracted}")

    return ExtractionResult(collected_info=merged, extracted_data=extracted)

"""
Senegal trip catalog: rules, gazetteer and text blocks.
"""
from .senegal import (
    SlotKind,
    SlotRule,
    Destination,
    QuestionSpec,
    INTERESTS,
    TRAVEL_STYLES,
    DESTINATIONS,
    SLOT_RULES,
    ESSENTIAL_QUESTIONS,
    READY_MESSAGE,
    SUMMARY_MARKER,
    get_destination,
)

__all__ = [
    "SlotKind",
    "SlotRule",
    "Destination",
    "QuestionSpec",
    "INTERESTS",
    "TRAVEL_STYLES",
    "DESTINATIONS",
    "SLOT_RULES",
    "ESSENTIAL_QUESTIONS",
    "READY_MESSAGE",
    "SUMMARY_MARKER",
    "get_destination",
]

"""
Phase transition policy.

The dialogue moves forward through greeting -> discovery -> planning ->
refinement -> summary, at most one step per turn, and never backward.
The stall-breaker counters make sure a user who never says the expected
keyword still reaches the summary.
"""
import logging

from catalog import DESTINATIONS
from catalog.senegal import (
    AGREEMENT_KEYWORDS,
    DISCOVERY_MIN_SLOTS,
    GREETING_MIN_LENGTH,
    PLANNING_STALL_LIMIT,
    REFINEMENT_STALL_LIMIT,
    VALIDATION_KEYWORDS,
)

from .state import PHASE_ORDER, CollectedInfo, Phase, phase_index

logger = logging.getLogger(__name__)


def _contains_any(message_lower: str, keywords) -> bool:
    return any(keyword in message_lower for keyword in keywords)


def mentions_destination(message_lower: str) -> bool:
    """True if the message names any gazetteer destination."""
    return any(
        _contains_any(message_lower, destination.aliases)
        for destination in DESTINATIONS
    )


def _candidate_phase(
    phase: Phase,
    info: CollectedInfo,
    user_message: str,
    questions_asked_count: int,
) -> Phase:
    message_lower = user_message.lower()

    if phase == Phase.GREETING:
        if len(user_message) > GREETING_MIN_LENGTH:
            return Phase.DISCOVERY

    elif phase == Phase.DISCOVERY:
        if len(info.filled_slots()) >= DISCOVERY_MIN_SLOTS:
            return Phase.PLANNING

    elif phase == Phase.PLANNING:
        if (
            _contains_any(message_lower, AGREEMENT_KEYWORDS)
            or mentions_destination(message_lower)
            or questions_asked_count >= PLANNING_STALL_LIMIT
        ):
            return Phase.REFINEMENT

    elif phase == Phase.REFINEMENT:
        if (
            _contains_any(message_lower, VALIDATION_KEYWORDS)
            or questions_asked_count >= REFINEMENT_STALL_LIMIT
        ):
            return Phase.SUMMARY

    return phase


def determine_next_phase(
    phase: Phase,
    info: CollectedInfo,
    user_message: str,
    questions_asked_count: int,
) -> Phase:
    """
    Decide the phase after this turn.

    Args:
        phase: Phase before the turn
        info: Slots after this turn's extraction
        user_message: Raw user message
        questions_asked_count: Messages processed before this one

    Returns:
        The next phase, never earlier than `phase`
    """
    phase = Phase(phase)
    candidate = _candidate_phase(phase, info, user_message or "", questions_asked_count)

    if phase_index(candidate) < phase_index(phase):
        return phase

    if candidate != phase:
        logger.info(f"Phase transition: {phase.value} -> {candidate.value}")

    return candidate


def is_ready_for_summary(info: CollectedInfo) -> bool:
    """Duration and interests collected, plus destinations or a travel style."""
    return bool(
        info.duration
        and info.interests
        and (info.specific_destinations or info.travel_style)
    )


def phase_progress(phase: Phase) -> int:
    """Progress through the dialogue as a percentage."""
    return round((phase_index(phase) + 1) / len(PHASE_ORDER) * 100)

"""
Deterministic conversation planner.

This module is the single source of truth for conversation flow decisions:
- Which essential question to ask next
- How a user message advances the session state
- When the conversation is complete and the itinerary is rendered

NO LLM calls are made in this module. All logic is deterministic.
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional
import logging

from catalog import ESSENTIAL_QUESTIONS, READY_MESSAGE, QuestionSpec
from catalog.senegal import READY_PRIORITY

from .extract import ExtractionResult, extract_slots
from .itinerary import format_final_itinerary
from .phases import determine_next_phase
from .state import QUESTION_EXCERPT_LENGTH, CollectedInfo, ConversationState, Phase

logger = logging.getLogger(__name__)


class NextAction(str, Enum):
    """Possible next actions in the conversation flow."""
    ASK_QUESTION = "ASK_QUESTION"
    COMPLETE = "COMPLETE"


@dataclass
class Question:
    """A question to ask the user."""
    slot_name: Optional[str]
    prompt: str


@dataclass
class PlannerResult:
    """Result of the planner decision."""
    next_action: NextAction
    phase: Phase
    question: Optional[Question] = None
    assistant_message: str = ""


@dataclass
class TurnResult:
    """A processed user message: the new state and what extraction found."""
    state: ConversationState
    extraction: ExtractionResult


# =============================================================================
# QUESTION SELECTION
# =============================================================================

def get_next_slot(info: CollectedInfo) -> Optional[QuestionSpec]:
    """
    Get the next essential question to ask.

    Order is fixed: duration, travelers, interests. Returns None when all
    three are collected.
    """
    for question_spec in ESSENTIAL_QUESTIONS:
        if not info.is_filled(question_spec.slot):
            return question_spec
    return None


def get_missing_essential_slots(info: CollectedInfo) -> List[str]:
    return [q.slot for q in ESSENTIAL_QUESTIONS if not info.is_filled(q.slot)]


def next_question(info: CollectedInfo) -> str:
    """Next question text. Always a non-empty string."""
    question_spec = get_next_slot(info)
    if question_spec is None:
        return READY_MESSAGE
    return question_spec.prompt


def next_question_priority(info: CollectedInfo) -> int:
    question_spec = get_next_slot(info)
    return question_spec.priority if question_spec else READY_PRIORITY


# =============================================================================
# TURN PROCESSING
# =============================================================================

def advance_state(state: ConversationState, user_message: str) -> TurnResult:
    """
    Apply one user message to a session state.

    Extraction runs first, then the phase policy sees the updated slots.
    The message excerpt is logged after the phase decision, so the
    stall-breaker counts messages processed before this one.

    Args:
        state: State before the turn (not mutated)
        user_message: Raw user message

    Returns:
        TurnResult with the new state and the extraction details
    """
    user_message = user_message or ""
    extraction = extract_slots(user_message, state.collected_info)
    info = extraction.collected_info

    phase = determine_next_phase(
        state.phase,
        info,
        user_message,
        len(state.questions_asked),
    )

    new_state = replace(
        state,
        phase=phase,
        collected_info=info,
        questions_asked=state.questions_asked + [user_message[:QUESTION_EXCERPT_LENGTH]],
        is_complete=state.is_complete or phase == Phase.SUMMARY,
        next_question_priority=next_question_priority(info),
    )

    return TurnResult(state=new_state, extraction=extraction)


def decide_next_action(state: ConversationState) -> PlannerResult:
    """
    Decide what to send back after a turn.

    Rules:
    1. Phase SUMMARY => COMPLETE with the formatted itinerary
    2. Otherwise => ASK_QUESTION with the next essential question
    """
    if state.phase == Phase.SUMMARY:
        logger.info("Planner: phase=summary => COMPLETE")
        return PlannerResult(
            next_action=NextAction.COMPLETE,
            phase=state.phase,
            assistant_message=format_final_itinerary(state.collected_info),
        )

    question_spec = get_next_slot(state.collected_info)
    prompt = next_question(state.collected_info)
    logger.info(f"Planner: Next slot to ask: {question_spec.slot if question_spec else 'none'}")

    return PlannerResult(
        next_action=NextAction.ASK_QUESTION,
        phase=state.phase,
        question=Question(
            slot_name=question_spec.slot if question_spec else None,
            prompt=prompt,
        ),
        assistant_message=prompt,
    )

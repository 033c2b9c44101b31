"""
Conversation engine - extractor, phase policy, planner, formatter and store.
"""
from .state import (
    Phase,
    PHASE_ORDER,
    CollectedInfo,
    ConversationState,
    new_state,
    phase_index,
)
from .extract import (
    ExtractionResult,
    extract_slots,
)
from .phases import (
    determine_next_phase,
    is_ready_for_summary,
)
from .planner import (
    NextAction,
    PlannerResult,
    TurnResult,
    get_next_slot,
    next_question,
    advance_state,
    decide_next_action,
)
from .itinerary import format_final_itinerary
from .prompts import build_master_prompt
from .store import ConversationStore, InMemoryConversationStore

__all__ = [
    "Phase",
    "PHASE_ORDER",
    "CollectedInfo",
    "ConversationState",
    "new_state",
    "phase_index",
    "ExtractionResult",
    "extract_slots",
    "determine_next_phase",
    "is_ready_for_summary",
    "NextAction",
    "PlannerResult",
    "TurnResult",
    "get_next_slot",
    "next_question",
    "advance_state",
    "decide_next_action",
    "format_final_itinerary",
    "build_master_prompt",
    "ConversationStore",
    "InMemoryConversationStore",
]

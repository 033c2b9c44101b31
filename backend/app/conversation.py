"""
Chat turn processing.

This module wires the deterministic engine to the HTTP layer:
1. Serializes turns per session with the store's session lock
2. Runs extraction + phase policy (engine.advance_state) and saves the state
3. Runs the planner to pick the next question or render the itinerary
4. Optionally lets the LLM word the next question (never the itinerary)
"""
import logging
from typing import Optional

from engine import (
    ConversationState,
    ConversationStore,
    advance_state,
    decide_next_action,
    is_ready_for_summary,
    next_question,
)
from engine import NextAction as PlannerNextAction
from engine.planner import get_next_slot

from .llm_service import TripAdvisorLLM
from .models import (
    ChatRequest,
    ChatResponse,
    NextAction,
    Phase,
    Question,
    StateSnapshot,
)

logger = logging.getLogger(__name__)


def _log_turn_summary(
    session_id: str,
    phase: str,
    next_action: str,
    question_slot: Optional[str],
    slots_filled: int,
    ai_call_made: bool,
) -> None:
    """
    Structured summary log for each chat turn.

    - session_id: Chat session identifier
    - phase: Dialogue phase after the turn
    - next_action: What the planner decided to do
    - question_slot: Which essential slot is being asked (if any)
    - slots_filled: Number of populated slots
    - ai_call_made: Whether the LLM worded the reply
    """
    logger.info(
        "[CHAT-SUMMARY] "
        f"id={session_id} "
        f"phase={phase} "
        f"action={next_action} "
        f"question={question_slot or 'none'} "
        f"slots_filled={slots_filled} "
        f"ai_used={ai_call_made}"
    )


class _ChatMetrics:
    """
    In-memory counters for chat turns.

    For logging only, not exposed via API. Counters reset on restart.
    """

    def __init__(self):
        self.total_requests = 0
        self.llm_replies = 0
        self.deterministic_only = 0
        self.fallback_used = 0
        self.completed_sessions = 0
        self.consecutive_fallbacks = 0

    def record_request(self, llm_used: bool, next_action: str, fallback: bool = False):
        self.total_requests += 1

        if llm_used:
            self.llm_replies += 1
        else:
            self.deterministic_only += 1

        if fallback:
            self.fallback_used += 1
            self.consecutive_fallbacks += 1
            if self.consecutive_fallbacks >= 3:
                logger.warning(
                    f"[CHAT-ANOMALY] consecutive_fallbacks={self.consecutive_fallbacks} (threshold=3)"
                )
        else:
            self.consecutive_fallbacks = 0

        if next_action == NextAction.COMPLETE.value:
            self.completed_sessions += 1

    def log_summary(self):
        if self.total_requests == 0:
            return

        llm_rate = (self.llm_replies / self.total_requests) * 100
        fallback_rate = (self.fallback_used / self.total_requests) * 100

        logger.info(
            f"[CHAT-METRICS] "
            f"total={self.total_requests} "
            f"llm_rate={llm_rate:.1f}% "
            f"fallback_rate={fallback_rate:.1f}% "
            f"completed={self.completed_sessions}"
        )


# Global metrics instance
_metrics = _ChatMetrics()


def build_state_snapshot(session_id: str, state: ConversationState) -> StateSnapshot:
    return StateSnapshot(
        sessionId=session_id,
        phase=Phase(state.phase.value),
        collectedInfo=state.collected_info.to_dict(),
        questionsAsked=list(state.questions_asked),
        isComplete=state.is_complete,
        nextQuestionPriority=state.next_question_priority,
        readyForSummary=is_ready_for_summary(state.collected_info),
        version=state.version,
    )


async def process_chat_turn(
    request: ChatRequest,
    store: ConversationStore,
    llm: Optional[TripAdvisorLLM] = None,
) -> ChatResponse:
    """
    Process one chat message.

    Args:
        request: The chat request
        store: Session store
        llm: Optional LLM service for wording non-terminal replies

    Returns:
        ChatResponse with the next question or the final itinerary
    """
    session_id = request.sessionId
    msg_preview = request.message[:50] + "..." if len(request.message) > 50 else request.message
    logger.info(f"[CHAT] Turn: id={session_id}, message='{msg_preview}'")

    try:
        async with store.lock(session_id):
            state = store.get(session_id)
            turn = advance_state(state, request.message)
            store.update(session_id, turn.state)

            planner_result = decide_next_action(turn.state)

            assistant_message = planner_result.assistant_message
            ai_call_made = False
            ai_model = "deterministic"

            if llm is not None and planner_result.next_action == PlannerNextAction.ASK_QUESTION:
                reply = await llm.generate_reply(request.message, turn.state, session_id)
                if reply:
                    assistant_message = reply
                    ai_call_made = True
                    ai_model = llm.model

        question = None
        if planner_result.question is not None:
            question = Question(
                text=planner_result.question.prompt,
                slot=planner_result.question.slot_name,
            )

        response = ChatResponse(
            sessionId=session_id,
            phase=Phase(turn.state.phase.value),
            nextAction=NextAction(planner_result.next_action.value),
            assistantMessage=assistant_message,
            question=question,
            collectedInfo=turn.state.collected_info.to_dict(),
            extractedThisTurn=turn.extraction.extracted_data,
            isComplete=turn.state.is_complete,
            aiCallMade=ai_call_made,
            aiModel=ai_model,
        )

        _log_turn_summary(
            session_id=session_id,
            phase=turn.state.phase.value,
            next_action=planner_result.next_action.value,
            question_slot=question.slot if question else None,
            slots_filled=len(turn.state.collected_info.filled_slots()),
            ai_call_made=ai_call_made,
        )

        _metrics.record_request(llm_used=ai_call_made, next_action=planner_result.next_action.value)

        # Log metrics summary every 100 requests
        if _metrics.total_requests % 100 == 0:
            _metrics.log_summary()

        return response

    except Exception as e:
        logger.error(f"[CHAT] Unexpected error: {e}", exc_info=True)
        _metrics.record_request(llm_used=False, next_action=NextAction.ASK_QUESTION.value, fallback=True)
        return _create_fallback_response(session_id, store)


def _create_fallback_response(session_id: str, store: ConversationStore) -> ChatResponse:
    """Safe response built from the stored state when a turn fails."""
    state = store.get(session_id)
    question_spec = get_next_slot(state.collected_info)
    text = next_question(state.collected_info)

    return ChatResponse(
        sessionId=session_id,
        phase=Phase(state.phase.value),
        nextAction=NextAction.ASK_QUESTION,
        assistantMessage=text,
        question=Question(text=text, slot=question_spec.slot if question_spec else None),
        collectedInfo=state.collected_info.to_dict(),
        isComplete=state.is_complete,
        aiCallMade=False,
        aiModel="fallback",
    )

"""
Conversation state model.

One ConversationState exists per chat session. The engine treats it as a
value: every turn produces a new state and the store swaps it in.
"""
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from catalog import INTERESTS, TRAVEL_STYLES

# Max chars of a user message kept in questions_asked
QUESTION_EXCERPT_LENGTH = 50


class Phase(str, Enum):
    """Dialogue phases, in conversation order."""
    GREETING = "greeting"
    DISCOVERY = "discovery"
    PLANNING = "planning"
    REFINEMENT = "refinement"
    SUMMARY = "summary"


PHASE_ORDER: List[Phase] = [
    Phase.GREETING,
    Phase.DISCOVERY,
    Phase.PLANNING,
    Phase.REFINEMENT,
    Phase.SUMMARY,
]


def phase_index(phase: Phase) -> int:
    """Rank of a phase in PHASE_ORDER."""
    return PHASE_ORDER.index(Phase(phase))


# Python field name -> wire key
_WIRE_KEYS = {
    "duration": "duration",
    "travelers": "travelers",
    "interests": "interests",
    "budget": "budget",
    "mobility": "mobility",
    "previous_experience": "previousExperience",
    "specific_destinations": "specificDestinations",
    "travel_style": "travelStyle",
}


@dataclass
class CollectedInfo:
    """Trip slots collected so far. Unset scalars are None, unset lists empty."""
    duration: Optional[str] = None
    travelers: Optional[str] = None
    interests: List[str] = field(default_factory=list)
    budget: Optional[str] = None
    mobility: Optional[str] = None
    previous_experience: Optional[str] = None
    specific_destinations: List[str] = field(default_factory=list)
    travel_style: Optional[str] = None

    def is_filled(self, slot_name: str) -> bool:
        value = getattr(self, slot_name)
        if value is None:
            return False
        if isinstance(value, str) and value.strip() == "":
            return False
        if isinstance(value, list) and not value:
            return False
        return True

    def filled_slots(self) -> List[str]:
        """Names of populated fields, in declaration order."""
        return [f.name for f in fields(self) if self.is_filled(f.name)]

    def copy(self) -> "CollectedInfo":
        return replace(
            self,
            interests=list(self.interests),
            specific_destinations=list(self.specific_destinations),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation, populated fields only."""
        return {
            _WIRE_KEYS[name]: getattr(self, name)
            for name in self.filled_slots()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollectedInfo":
        """
        Build from a wire or field-name dict.

        Unknown keys are ignored. Interests and travel style outside the
        catalog vocabularies are dropped, since only extractor values can
        drive the itinerary.
        """
        by_wire_key = {wire: name for name, wire in _WIRE_KEYS.items()}
        kwargs = {}
        for key, value in data.items():
            name = by_wire_key.get(key, key if key in _WIRE_KEYS else None)
            if name is None:
                continue
            kwargs[name] = list(value) if isinstance(value, (list, tuple)) else value

        if "interests" in kwargs:
            kwargs["interests"] = [i for i in kwargs["interests"] if i in INTERESTS]
        if kwargs.get("travel_style") not in TRAVEL_STYLES:
            kwargs.pop("travel_style", None)
        return cls(**kwargs)


@dataclass
class ConversationState:
    """
    State of one chat session.

    Attributes:
        phase: Current dialogue phase, never moves backward
        collected_info: Slots extracted so far
        questions_asked: Truncated excerpts of processed messages; only its
            length is used, as a stall-breaker counter
        is_complete: True once phase reaches SUMMARY
        next_question_priority: Informational, priority of the next
            essential question (4 when all are collected)
        version: Bumped by the store on every write
        updated_at: Time of the last store write
    """
    phase: Phase = Phase.GREETING
    collected_info: CollectedInfo = field(default_factory=CollectedInfo)
    questions_asked: List[str] = field(default_factory=list)
    is_complete: bool = False
    next_question_priority: int = 1
    version: int = 0
    updated_at: Optional[datetime] = None


def new_state() -> ConversationState:
    """Initial state for a session seen for the first time."""
    return ConversationState()

"""
Pydantic models for the Chat API.
Python 3.9 compatible - uses typing.List, typing.Dict, typing.Optional
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

MAX_MESSAGE_LENGTH = 2000
MAX_SESSION_ID_LENGTH = 200


class Phase(str, Enum):
    GREETING = "greeting"
    DISCOVERY = "discovery"
    PLANNING = "planning"
    REFINEMENT = "refinement"
    SUMMARY = "summary"


class NextAction(str, Enum):
    ASK_QUESTION = "ASK_QUESTION"
    COMPLETE = "COMPLETE"


class ChatRequest(BaseModel):
    sessionId: str = Field(..., min_length=1, max_length=MAX_SESSION_ID_LENGTH)
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)


class Question(BaseModel):
    text: str
    slot: Optional[str] = None  # None once all essential slots are collected


class ChatResponse(BaseModel):
    sessionId: str
    phase: Phase
    nextAction: NextAction
    assistantMessage: str
    question: Optional[Question] = None
    collectedInfo: Dict[str, Any] = Field(default_factory=dict)
    extractedThisTurn: Dict[str, Any] = Field(default_factory=dict)
    isComplete: bool = False
    aiCallMade: bool = False
    aiModel: str = "deterministic"


class StateSnapshot(BaseModel):
    sessionId: str
    phase: Phase
    collectedInfo: Dict[str, Any] = Field(default_factory=dict)
    questionsAsked: List[str] = Field(default_factory=list)
    isComplete: bool = False
    nextQuestionPriority: int = 1
    readyForSummary: bool = False
    version: int = 0

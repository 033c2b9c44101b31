"""
Senegal Trip Planner Backend - FastAPI Application

The deterministic engine is the SOLE authority for conversation flow.
OpenAI is optional and only words the next question; without a key the
backend runs fully deterministic.

Python 3.9 compatible.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from engine import ConversationStore, InMemoryConversationStore
from engine.store import DEFAULT_MAX_SESSIONS, DEFAULT_SESSION_TTL

from .conversation import build_state_snapshot, process_chat_turn
from .llm_service import TripAdvisorLLM
from .models import MAX_SESSION_ID_LENGTH, ChatRequest, ChatResponse, StateSnapshot

APP_VERSION = "1.0.0"

# Load environment variables from backend/.env
# Try multiple paths to ensure we find .env
env_paths = [
    Path(__file__).parent.parent / ".env",  # backend/.env
    Path.cwd() / ".env",  # current working directory
]
for env_path in env_paths:
    if env_path.exists():
        load_dotenv(env_path)
        break
else:
    load_dotenv()  # fallback to default behavior

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.getenv("DEBUG", "false").lower() == "true" else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Service instances (Python 3.9 compatible type hints)
_conversation_store: Optional[ConversationStore] = None
_llm_service: Optional[TripAdvisorLLM] = None
_llm_checked = False


def _mask_key(key: Optional[str]) -> str:
    """Mask API key showing only last 4 chars."""
    if not key:
        return "(not set)"
    if len(key) <= 4:
        return "****"
    return f"****{key[-4:]}"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default


def _validate_session_id(session_id: str) -> None:
    if not session_id.strip() or len(session_id) > MAX_SESSION_ID_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"sessionId must be 1-{MAX_SESSION_ID_LENGTH} non-blank characters",
        )


def _llm_kill_switch() -> bool:
    return os.getenv("CONVERSATION_LLM_KILL_SWITCH", "false").lower() == "true"


def get_conversation_store() -> ConversationStore:
    """Get or create the session store."""
    global _conversation_store
    if _conversation_store is None:
        ttl_minutes = _env_int("SESSION_TTL_MINUTES", int(DEFAULT_SESSION_TTL.total_seconds() // 60))
        max_sessions = _env_int("MAX_SESSIONS", DEFAULT_MAX_SESSIONS)
        _conversation_store = InMemoryConversationStore(
            ttl=timedelta(minutes=ttl_minutes),
            max_sessions=max_sessions,
        )
        logger.info(f"Session store initialized: ttl={ttl_minutes}m max_sessions={max_sessions}")
    return _conversation_store


def get_llm_service() -> Optional[TripAdvisorLLM]:
    """LLM service, or None when no key is configured or the kill switch is on."""
    global _llm_service, _llm_checked
    if _llm_kill_switch():
        return None
    if not _llm_checked:
        _llm_checked = True
        if os.getenv("OPENAI_API_KEY"):
            _llm_service = TripAdvisorLLM()
        else:
            logger.warning("OPENAI_API_KEY missing - running in deterministic mode")
    return _llm_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - initialize services."""
    logger.info("=" * 60)
    logger.info("Initializing Senegal Trip Planner Backend")
    logger.info("=" * 60)

    openai_key = os.getenv("OPENAI_API_KEY")
    logger.info(f"OPENAI_API_KEY present: {bool(openai_key)} ({_mask_key(openai_key)})")
    logger.info(f"OPENAI_MODEL: {os.getenv('OPENAI_MODEL', 'gpt-4o-mini')}")
    logger.info(f"CONVERSATION_LLM_KILL_SWITCH: {_llm_kill_switch()}")

    get_conversation_store()
    get_llm_service()

    logger.info("=" * 60)

    yield

    logger.info("Shutting down Senegal Trip Planner Backend")


app = FastAPI(
    title="Senegal Trip Planner Backend",
    description="Chat-driven trip planning driven by a deterministic conversation engine",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": APP_VERSION}


@app.post("/chat/next", response_model=ChatResponse)
async def chat_next(
    request: ChatRequest,
    store: ConversationStore = Depends(get_conversation_store),
    llm: Optional[TripAdvisorLLM] = Depends(get_llm_service),
) -> ChatResponse:
    """
    Process one chat message and return the next question or the itinerary.

    The session is created on first use; no separate "start" call is needed.
    """
    return await process_chat_turn(request, store, llm)


@app.get("/chat/{session_id}/state", response_model=StateSnapshot)
async def chat_state(
    session_id: str,
    store: ConversationStore = Depends(get_conversation_store),
) -> StateSnapshot:
    """Current state of a session (initialized if unknown)."""
    _validate_session_id(session_id)
    return build_state_snapshot(session_id, store.get(session_id))


@app.delete("/chat/{session_id}", status_code=204)
async def chat_reset(
    session_id: str,
    store: ConversationStore = Depends(get_conversation_store),
) -> Response:
    """Forget a session. Idempotent."""
    _validate_session_id(session_id)
    evicted = store.evict(session_id)
    logger.info(f"[CHAT] Session reset: id={session_id} existed={evicted}")
    return Response(status_code=204)

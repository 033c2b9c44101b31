"""
Conversation state store.

Sessions are created lazily the first time their id is seen. The in-memory
implementation expires idle sessions after a TTL and caps the number of
live sessions, evicting the least recently written ones first.

Concurrent turns for the same session are serialized with a per-session
asyncio lock (see ConversationStore.lock). compare_and_set gives callers
that cannot hold the lock an optimistic alternative.
"""
import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable, Dict, Optional

from .state import ConversationState, new_state

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(minutes=120)
DEFAULT_MAX_SESSIONS = 10000


class ConversationStore(ABC):
    """Keyed session registry. Unknown keys are initialized, never an error."""

    @abstractmethod
    def initialize(self, session_id: str) -> ConversationState:
        ...

    @abstractmethod
    def get(self, session_id: str) -> ConversationState:
        ...

    @abstractmethod
    def update(self, session_id: str, state: ConversationState) -> None:
        ...

    @abstractmethod
    def evict(self, session_id: str) -> bool:
        ...

    @abstractmethod
    def compare_and_set(
        self,
        session_id: str,
        expected_version: int,
        state: ConversationState,
    ) -> bool:
        ...

    @abstractmethod
    def lock(self, session_id: str):
        """Async context manager holding the session's turn lock."""
        ...


class InMemoryConversationStore(ConversationStore):
    """
    Process-local store with TTL expiry and a size bound.

    Args:
        ttl: Idle time after which a session is dropped
        max_sessions: Live session cap
        clock: Returns the current time (injectable for tests)
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.ttl = ttl
        self.max_sessions = max_sessions
        self._clock = clock
        self._states: Dict[str, ConversationState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        # Turns holding or waiting on each lock; the entry lives while > 0
        self._lock_users: Dict[str, int] = {}
        self._mutex = threading.Lock()

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, session_id: str) -> bool:
        with self._mutex:
            return self._get_live(session_id) is not None

    def _is_expired(self, state: ConversationState, now: datetime) -> bool:
        return state.updated_at is not None and now - state.updated_at >= self.ttl

    def _get_live(self, session_id: str) -> Optional[ConversationState]:
        state = self._states.get(session_id)
        if state is None:
            return None
        if self._is_expired(state, self._clock()):
            logger.info(f"Session expired: id={session_id}")
            del self._states[session_id]
            return None
        return state

    def _write(self, session_id: str, state: ConversationState) -> ConversationState:
        stored = replace(state, updated_at=self._clock())
        self._states[session_id] = stored
        self._enforce_bounds()
        return stored

    def _enforce_bounds(self) -> None:
        if len(self._states) <= self.max_sessions:
            return

        now = self._clock()
        expired = [k for k, s in self._states.items() if self._is_expired(s, now)]
        for key in expired:
            del self._states[key]

        overflow = len(self._states) - self.max_sessions
        if overflow > 0:
            oldest = sorted(self._states, key=lambda k: self._states[k].updated_at)[:overflow]
            for key in oldest:
                del self._states[key]
            logger.warning(f"Session store full: evicted {len(oldest)} oldest sessions")

    def initialize(self, session_id: str) -> ConversationState:
        with self._mutex:
            logger.info(f"Session initialized: id={session_id}")
            return self._write(session_id, new_state())

    def get(self, session_id: str) -> ConversationState:
        with self._mutex:
            state = self._get_live(session_id)
            if state is not None:
                return state
            logger.info(f"Session initialized: id={session_id}")
            return self._write(session_id, new_state())

    def update(self, session_id: str, state: ConversationState) -> None:
        with self._mutex:
            current = self._get_live(session_id)
            version = current.version + 1 if current is not None else state.version + 1
            self._write(session_id, replace(state, version=version))

    def compare_and_set(
        self,
        session_id: str,
        expected_version: int,
        state: ConversationState,
    ) -> bool:
        """
        Write `state` only if the stored version still equals expected_version.

        Returns:
            True if written, False if another writer got there first
        """
        with self._mutex:
            current = self._get_live(session_id)
            current_version = current.version if current is not None else 0
            if current_version != expected_version:
                logger.warning(
                    f"Stale session write rejected: id={session_id} "
                    f"expected={expected_version} actual={current_version}"
                )
                return False
            self._write(session_id, replace(state, version=current_version + 1))
            return True

    def evict(self, session_id: str) -> bool:
        with self._mutex:
            return self._states.pop(session_id, None) is not None

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """
        Hold the session's turn lock.

        The lock is reference counted and discarded only once no turn holds
        or waits on it. Evicting or expiring the session leaves it in place.
        """
        with self._mutex:
            session_lock = self._locks.setdefault(session_id, asyncio.Lock())
            self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with session_lock:
                yield
        finally:
            with self._mutex:
                self._lock_users[session_id] -= 1
                if self._lock_users[session_id] == 0:
                    del self._lock_users[session_id]
                    del self._locks[session_id]

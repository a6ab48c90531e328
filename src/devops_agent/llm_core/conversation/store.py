"""In-memory, session-keyed conversation state."""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from ..logger import get_logger
from ..messages import Message

logger = get_logger(__name__)

DEFAULT_SESSION_TTL = 3600.0


class ConversationHistory(BaseModel):
    """The append-only message log of one session.

    Attributes:
        session_id: Session the history belongs to.
        user_id: Optional user identifier supplied on creation.
        messages: Ordered messages; only ever appended to.
        metadata: Free-form metadata bag.
        last_active: Clock reading of the last append or lookup, used for eviction.
    """

    session_id: str
    user_id: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    last_active: float = 0.0

    def append(self, message: Message) -> None:
        self.messages.append(message)

    def __len__(self) -> int:
        return len(self.messages)


class ConversationStore:
    """
    Owns every ConversationHistory, keyed by session id.

    Sessions idle for longer than ``ttl_seconds`` are evicted lazily on access
    (or explicitly via ``evict_idle``); sessions with a request in flight are
    never evicted. Nothing is persisted across process restarts.
    """

    def __init__(self, ttl_seconds: Optional[float] = DEFAULT_SESSION_TTL, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl_seconds: Idle time after which a session is dropped. ``None`` disables eviction.
            clock: Monotonic time source, injectable for tests.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._conversations: Dict[str, ConversationHistory] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, int] = {}

    def get_or_create(self, session_id: str, user_id: Optional[str] = None) -> ConversationHistory:
        """Return the session's history, creating an empty one on first access."""
        self.evict_idle()
        history = self._conversations.get(session_id)
        if history is None:
            history = ConversationHistory(session_id=session_id, user_id=user_id)
            self._conversations[session_id] = history
            logger.debug("Created conversation for session %s", session_id)
        history.last_active = self._clock()
        return history

    def get(self, session_id: str) -> Optional[ConversationHistory]:
        self.evict_idle()
        return self._conversations.get(session_id)

    def touch(self, session_id: str) -> None:
        history = self._conversations.get(session_id)
        if history is not None:
            history.last_active = self._clock()

    def clear(self, session_id: str) -> None:
        """Drop the session's history entirely.

        The session's lock survives while requests hold or wait for it.
        """
        self._conversations.pop(session_id, None)
        if not self.is_busy(session_id):
            self._locks.pop(session_id, None)
        logger.info("Cleared conversation: %s", session_id)

    def clear_all(self) -> None:
        self._conversations.clear()
        self._locks = {sid: lock for sid, lock in self._locks.items() if self.is_busy(sid)}
        logger.info("Cleared all conversations")

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """The lock serializing requests for one session."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    @asynccontextmanager
    async def session(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock, queueing behind requests already in flight.

        A request counts as busy from the moment it starts waiting, so its lock is
        never dropped and recreated while it is queued.
        """
        lock = self.lock_for(session_id)
        self._pending[session_id] = self._pending.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._pending[session_id] - 1
            if remaining:
                self._pending[session_id] = remaining
            else:
                del self._pending[session_id]
                if session_id not in self._conversations and self._locks.get(session_id) is lock:
                    del self._locks[session_id]

    def is_busy(self, session_id: str) -> bool:
        """Whether a request holds or waits for the session's lock."""
        if self._pending.get(session_id):
            return True
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def evict_idle(self) -> List[str]:
        """Drop sessions idle for longer than the TTL.

        Returns:
            The evicted session ids.
        """
        if self.ttl_seconds is None:
            return []

        cutoff = self._clock() - self.ttl_seconds
        expired = [
            sid
            for sid, history in self._conversations.items()
            if history.last_active < cutoff and not self.is_busy(sid)
        ]
        for sid in expired:
            del self._conversations[sid]
            self._locks.pop(sid, None)
        if expired:
            logger.info("Evicted %d idle conversation(s)", len(expired))
        return expired

    @property
    def session_ids(self) -> List[str]:
        return list(self._conversations)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

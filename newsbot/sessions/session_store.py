"""
Session Store for Multi-turn Conversations

Tracks per-conversation message history and lifecycle.

Sessions live on a fixed lease: each one expires exactly ``ttl_seconds``
after creation, whatever the activity in between. Activity never extends it.
"""

import logging
import threading
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..models import Message, Session

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when writing to a session id that does not exist (or has expired)."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class SessionStore:
    """
    Thread-safe in-memory session registry.

    Features:
    - Session creation with an expiry timer scheduled once, at createdAt + TTL
    - Strict writes (unknown id raises), lenient reads (unknown id is empty)
    - Clearing keeps the session id and creation time
    - All access serialized through one lock around the session map
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
        schedule_expiry: bool = True
    ):
        """
        Initialize the session store.

        Args:
            ttl_seconds: Fixed lifetime of every session, counted from creation
            clock: Monotonic time source used for expiry deadlines
            schedule_expiry: Start a timer per session that removes it at expiry.
                Reads treat expired sessions as absent either way.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._schedule_expiry = schedule_expiry
        self._sessions: Dict[str, Session] = {}
        self._timers: Dict[str, threading.Timer] = {}
        self._lock = threading.RLock()

    def _is_expired(self, session: Session) -> bool:
        return self._clock() >= session.expires_at

    def _lookup(self, session_id: str) -> Optional[Session]:
        """Return the live session or None. Caller must hold the lock."""
        session = self._sessions.get(session_id)
        if session is not None and self._is_expired(session):
            self._remove(session_id)
            return None
        return session

    def _remove(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        timer = self._timers.pop(session_id, None)
        if timer is not None and timer is not threading.current_thread():
            timer.cancel()
        logger.info(f"Session expired: {session_id}")

    def _expire(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._remove(session_id)

    def create_session(self, session_id: Optional[str] = None) -> str:
        """
        Create a new conversation session.

        Args:
            session_id: Optional explicit id (a UUID4 is generated otherwise)

        Returns:
            Session ID
        """
        session_id = session_id or str(uuid.uuid4())
        now = datetime.now()

        with self._lock:
            if session_id in self._sessions:
                raise ValueError(f"Session already exists: {session_id}")

            self._sessions[session_id] = Session(
                id=session_id,
                created_at=now,
                last_activity=now,
                expires_at=self._clock() + self.ttl_seconds,
            )

            if self._schedule_expiry:
                timer = threading.Timer(self.ttl_seconds, self._expire, args=(session_id,))
                timer.daemon = True
                self._timers[session_id] = timer
                timer.start()

        logger.info(f"Created new session: {session_id}")
        return session_id

    def get_session(self, session_id: str) -> Optional[Session]:
        """Return a snapshot of the session, or None if unknown or expired."""
        with self._lock:
            session = self._lookup(session_id)
            return session.snapshot() if session is not None else None

    def append_message(self, session_id: str, user_message: str, bot_response: str) -> Message:
        """
        Append one exchange to a session's history.

        Raises:
            SessionNotFoundError: If the session does not exist or has expired
        """
        with self._lock:
            session = self._lookup(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            now = datetime.now()
            message = Message(timestamp=now.isoformat(), user=user_message, bot=bot_response)
            session.messages.append(message)
            session.last_activity = now

        logger.debug(f"Added message to session {session_id}")
        return message

    def get_history(self, session_id: str) -> List[Message]:
        """
        Get the ordered message history.

        Returns:
            Messages in append order; empty for an unknown session
        """
        with self._lock:
            session = self._lookup(session_id)
            return list(session.messages) if session is not None else []

    def clear_session(self, session_id: str) -> None:
        """Reset a session's messages, keeping its id and creation time. No-op if unknown."""
        with self._lock:
            session = self._lookup(session_id)
            if session is not None:
                session.messages = []
                logger.info(f"Cleared session {session_id}")

    def active_count(self) -> int:
        """Number of live sessions."""
        with self._lock:
            for session_id in [sid for sid, s in self._sessions.items() if self._is_expired(s)]:
                self._remove(session_id)
            return len(self._sessions)

    def close(self) -> None:
        """Cancel pending expiry timers and drop every session."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._sessions.clear()

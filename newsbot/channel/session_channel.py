"""
Session Channel

Transport-independent delivery layer between chat clients and the core.

Clients submit events (create, join, send, reset) and receive ChannelEvents
through subscriber callables registered per session. Messages sent to one
session are answered strictly in submission order by a single in-flight
worker; different sessions are served in parallel on a shared thread pool.

Events emitted:
    session-created   {'sessionId': str}
    session-history   [{'timestamp', 'user', 'bot'}, ...]
    bot-response      {'userMessage', 'botResponse', 'timestamp'}
    session-reset     None
    error             {'message': str}
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple

from ..models import ChatResponse
from ..query.handler import QueryHandler
from ..sessions.session_store import SessionNotFoundError, SessionStore

logger = logging.getLogger(__name__)

SESSION_CREATED = 'session-created'
SESSION_HISTORY = 'session-history'
BOT_RESPONSE = 'bot-response'
SESSION_RESET = 'session-reset'
ERROR = 'error'


@dataclass(frozen=True)
class ChannelEvent:
    """An outbound event delivered to subscribers."""
    name: str
    payload: Any = None


Subscriber = Callable[[ChannelEvent], None]

_PendingMessage = Tuple[str, Optional[Subscriber], Future]


class SessionChannel:
    """
    Routes chat events to the query handler and answers back to subscribers.
    """

    def __init__(
        self,
        query_handler: QueryHandler,
        session_store: SessionStore,
        max_workers: int = 4
    ):
        """
        Args:
            query_handler: Answers messages and records them in session history
            session_store: Session registry
            max_workers: Size of the worker pool serving sessions in parallel
        """
        self.query_handler = query_handler
        self.session_store = session_store
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='session-channel')
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._queues: Dict[str, Deque[_PendingMessage]] = {}
        self._draining: Set[str] = set()
        self._lock = threading.Lock()

    def _deliver(self, subscriber: Optional[Subscriber], event: ChannelEvent) -> None:
        if subscriber is None:
            return
        try:
            subscriber(event)
        except Exception:
            logger.exception(f"Subscriber failed handling '{event.name}' event")

    def _broadcast(self, session_id: str, event: ChannelEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(session_id, []))
        for subscriber in subscribers:
            self._deliver(subscriber, event)

    def subscribe(self, session_id: str, subscriber: Subscriber) -> None:
        """Register ``subscriber`` for every broadcast to ``session_id``."""
        with self._lock:
            subscribers = self._subscribers.setdefault(session_id, [])
            if subscriber not in subscribers:
                subscribers.append(subscriber)

    def unsubscribe(self, session_id: str, subscriber: Subscriber) -> None:
        with self._lock:
            subscribers = self._subscribers.get(session_id, [])
            if subscriber in subscribers:
                subscribers.remove(subscriber)
            if not subscribers:
                self._subscribers.pop(session_id, None)

    def create_session(self, subscriber: Optional[Subscriber] = None) -> Optional[str]:
        """Create a session and emit ``session-created`` to the requester."""
        try:
            session_id = self.session_store.create_session()
        except Exception as e:
            logger.error(f"Error creating session: {e}")
            self._deliver(subscriber, ChannelEvent(ERROR, {'message': 'Failed to create session'}))
            return None

        self._deliver(subscriber, ChannelEvent(SESSION_CREATED, {'sessionId': session_id}))
        return session_id

    def join_session(self, session_id: str, subscriber: Subscriber) -> None:
        """Subscribe to a session and emit its current history to the joiner."""
        self.subscribe(session_id, subscriber)
        history = [message.to_dict() for message in self.session_store.get_history(session_id)]
        self._deliver(subscriber, ChannelEvent(SESSION_HISTORY, history))
        logger.info(f"Subscriber joined session: {session_id}")

    def reset_session(self, session_id: str, subscriber: Optional[Subscriber] = None) -> None:
        """Clear a session's history and emit ``session-reset`` to the requester."""
        self.session_store.clear_session(session_id)
        self._deliver(subscriber, ChannelEvent(SESSION_RESET))
        logger.info(f"Session reset: {session_id}")

    def send_message(
        self,
        session_id: str,
        message: str,
        subscriber: Optional[Subscriber] = None
    ) -> Future:
        """
        Queue a message for answering.

        The answer is broadcast as ``bot-response`` to every subscriber of the
        session; failures are reported as ``error`` to the sender only.

        Returns:
            Future resolving to the ChatResponse (or raising the failure)
        """
        future: Future = Future()
        with self._lock:
            self._queues.setdefault(session_id, deque()).append((message, subscriber, future))
            if session_id not in self._draining:
                self._draining.add(session_id)
                self._executor.submit(self._drain, session_id)
        return future

    def _drain(self, session_id: str) -> None:
        while True:
            with self._lock:
                queue = self._queues.get(session_id)
                if not queue:
                    self._queues.pop(session_id, None)
                    self._draining.discard(session_id)
                    return
                message, subscriber, future = queue.popleft()

            # Cancelled while queued; a running future can no longer be cancelled
            if not future.set_running_or_notify_cancel():
                logger.info(f"Skipping cancelled message in session {session_id}")
                continue

            try:
                self._answer(session_id, message, subscriber, future)
            except Exception:
                # Keep draining so later messages for this session are still answered
                logger.exception(f"Unexpected failure answering message in session {session_id}")
                if not future.done():
                    future.set_exception(RuntimeError("Message could not be answered"))

    def _answer(
        self,
        session_id: str,
        message: str,
        subscriber: Optional[Subscriber],
        future: Future
    ) -> None:
        try:
            response: ChatResponse = self.query_handler.ask(session_id, message)
        except SessionNotFoundError as e:
            logger.warning(f"Message for unknown session {session_id}")
            self._deliver(subscriber, ChannelEvent(ERROR, {'message': str(e)}))
            future.set_exception(e)
            return
        except Exception as e:
            logger.error(f"Error processing message in session {session_id}: {e}")
            self._deliver(subscriber, ChannelEvent(
                ERROR, {'message': 'Failed to process your message. Please try again.'}
            ))
            future.set_exception(e)
            return

        self._broadcast(session_id, ChannelEvent(BOT_RESPONSE, response.to_payload()))
        future.set_result(response)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and wait for queued messages to finish."""
        self._executor.shutdown(wait=wait)

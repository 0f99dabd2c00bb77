"""
Test Suite for the Session Channel

Covers the event contract, per-session ordering and error reporting.
"""

import threading
import time
import pytest
from unittest.mock import Mock

from newsbot.channel.session_channel import (
    BOT_RESPONSE,
    ERROR,
    SESSION_CREATED,
    SESSION_HISTORY,
    SESSION_RESET,
    ChannelEvent,
    SessionChannel,
)
from newsbot.query.handler import QueryHandler
from newsbot.sessions.session_store import SessionNotFoundError, SessionStore


class EventLog:
    """Thread-safe subscriber that records every event it receives."""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def __call__(self, event):
        with self._lock:
            self.events.append(event)

    def named(self, name):
        with self._lock:
            return [e for e in self.events if e.name == name]


@pytest.fixture
def session_store():
    store = SessionStore(schedule_expiry=False)
    yield store
    store.close()


@pytest.fixture
def rag_service():
    rag = Mock()
    rag.process_query.side_effect = lambda q: f"answer to {q}"
    return rag


@pytest.fixture
def channel(rag_service, session_store):
    channel = SessionChannel(QueryHandler(rag_service, session_store), session_store, max_workers=4)
    yield channel
    channel.shutdown()


class TestSessionEvents:
    """Test create, join and reset events."""

    def test_create_session_emits_id(self, channel, session_store):
        log = EventLog()

        session_id = channel.create_session(log)

        assert log.events == [ChannelEvent(SESSION_CREATED, {'sessionId': session_id})]
        assert session_store.get_session(session_id) is not None

    def test_create_session_failure_emits_error(self, channel, session_store):
        session_store.create_session = Mock(side_effect=RuntimeError("boom"))
        log = EventLog()

        assert channel.create_session(log) is None
        assert log.events == [ChannelEvent(ERROR, {'message': 'Failed to create session'})]

    def test_join_emits_history(self, channel, session_store):
        session_id = session_store.create_session()
        session_store.append_message(session_id, "q1", "a1")
        log = EventLog()

        channel.join_session(session_id, log)

        (event,) = log.events
        assert event.name == SESSION_HISTORY
        assert [(m['user'], m['bot']) for m in event.payload] == [("q1", "a1")]

    def test_join_unknown_session_emits_empty_history(self, channel):
        log = EventLog()

        channel.join_session("missing", log)

        assert log.events == [ChannelEvent(SESSION_HISTORY, [])]

    def test_reset_clears_history(self, channel, session_store):
        session_id = session_store.create_session()
        session_store.append_message(session_id, "q1", "a1")
        log = EventLog()

        channel.reset_session(session_id, log)

        assert log.events == [ChannelEvent(SESSION_RESET)]
        assert session_store.get_history(session_id) == []
        assert session_store.get_session(session_id) is not None


class TestSendMessage:
    """Test answering and broadcasting."""

    def test_response_broadcast_to_all_subscribers(self, channel, session_store):
        session_id = session_store.create_session()
        first, second = EventLog(), EventLog()
        channel.join_session(session_id, first)
        channel.join_session(session_id, second)

        response = channel.send_message(session_id, "Any news?", first).result(timeout=5)

        assert response.bot_response == "answer to Any news?"
        for log in (first, second):
            (event,) = log.named(BOT_RESPONSE)
            assert event.payload['userMessage'] == "Any news?"
            assert event.payload['botResponse'] == "answer to Any news?"
            assert event.payload['timestamp'] == response.timestamp

    def test_unsubscribed_client_not_notified(self, channel, session_store):
        session_id = session_store.create_session()
        log = EventLog()
        channel.join_session(session_id, log)
        channel.unsubscribe(session_id, log)

        channel.send_message(session_id, "q").result(timeout=5)

        assert log.named(BOT_RESPONSE) == []

    def test_unknown_session_reports_error_to_sender(self, channel, rag_service):
        log = EventLog()

        future = channel.send_message("missing", "q", log)

        with pytest.raises(SessionNotFoundError):
            future.result(timeout=5)
        assert log.events == [ChannelEvent(ERROR, {'message': 'Session not found: missing'})]
        rag_service.process_query.assert_not_called()

    def test_processing_failure_reports_generic_error(self, channel, session_store, rag_service):
        rag_service.process_query.side_effect = RuntimeError("index exploded")
        session_id = session_store.create_session()
        sender, other = EventLog(), EventLog()
        channel.join_session(session_id, other)

        future = channel.send_message(session_id, "q", sender)

        with pytest.raises(RuntimeError):
            future.result(timeout=5)
        assert sender.events == [
            ChannelEvent(ERROR, {'message': 'Failed to process your message. Please try again.'})
        ]
        assert other.named(ERROR) == []

    def test_failing_subscriber_does_not_break_delivery(self, channel, session_store):
        session_id = session_store.create_session()
        broken = Mock(side_effect=RuntimeError("client gone"))
        log = EventLog()
        channel.subscribe(session_id, broken)
        channel.subscribe(session_id, log)

        channel.send_message(session_id, "q").result(timeout=5)

        assert len(log.named(BOT_RESPONSE)) == 1


class TestOrdering:
    """Test per-session submission order."""

    def test_history_follows_submission_order(self, rag_service, session_store):
        # Earlier messages take longer, so completion order would reverse them
        def slow_answer(q):
            time.sleep(0.01 * (10 - int(q)))
            return f"answer {q}"

        rag_service.process_query.side_effect = slow_answer
        channel = SessionChannel(QueryHandler(rag_service, session_store), session_store, max_workers=4)
        try:
            session_id = session_store.create_session()
            futures = [channel.send_message(session_id, str(i)) for i in range(10)]
            for future in futures:
                future.result(timeout=10)
        finally:
            channel.shutdown()

        history = session_store.get_history(session_id)
        assert [m.user for m in history] == [str(i) for i in range(10)]

    def test_cancelled_message_skipped_and_session_keeps_answering(self, rag_service, session_store):
        release = threading.Event()

        def answer(q):
            if q == "one":
                release.wait(timeout=5)
            return f"answer {q}"

        rag_service.process_query.side_effect = answer
        channel = SessionChannel(QueryHandler(rag_service, session_store), session_store, max_workers=2)
        try:
            session_id = session_store.create_session()
            first = channel.send_message(session_id, "one")
            second = channel.send_message(session_id, "two")

            assert second.cancel()
            release.set()
            first.result(timeout=5)

            third = channel.send_message(session_id, "three")
            assert third.result(timeout=5).bot_response == "answer three"
        finally:
            release.set()
            channel.shutdown()

        assert second.cancelled()
        assert [m.user for m in session_store.get_history(session_id)] == ["one", "three"]
        assert [c.args[0] for c in rag_service.process_query.call_args_list] == ["one", "three"]

    def test_unexpected_failure_does_not_stall_session(self, rag_service, session_store):
        channel = SessionChannel(QueryHandler(rag_service, session_store), session_store, max_workers=1)
        original_answer = channel._answer
        failures = iter([True])

        def flaky_answer(*args):
            if next(failures, False):
                raise RuntimeError("broadcast failed")
            original_answer(*args)

        channel._answer = flaky_answer
        try:
            session_id = session_store.create_session()
            first = channel.send_message(session_id, "one")
            with pytest.raises(RuntimeError):
                first.result(timeout=5)

            second = channel.send_message(session_id, "two")
            assert second.result(timeout=5).bot_response == "answer to two"
        finally:
            channel.shutdown()

    def test_sessions_processed_in_parallel(self, rag_service, session_store):
        release = threading.Event()
        started = []

        def blocking_answer(q):
            started.append(q)
            release.wait(timeout=5)
            return q

        rag_service.process_query.side_effect = blocking_answer
        channel = SessionChannel(QueryHandler(rag_service, session_store), session_store, max_workers=2)
        try:
            a = session_store.create_session()
            b = session_store.create_session()
            futures = [channel.send_message(a, "a"), channel.send_message(b, "b")]

            deadline = time.monotonic() + 5
            while len(started) < 2 and time.monotonic() < deadline:
                time.sleep(0.01)
            assert sorted(started) == ["a", "b"]
        finally:
            release.set()
            for future in futures:
                future.result(timeout=5)
            channel.shutdown()

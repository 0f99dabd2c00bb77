"""
Tests for the session-scoped query handler.
"""

import pytest
from unittest.mock import Mock

from newsbot.query.handler import QueryHandler
from newsbot.sessions.session_store import SessionNotFoundError, SessionStore


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


class TestQueryHandler:
    """Test answering and recording messages."""

    def test_ask_records_exchange(self, rag_service, session_store):
        handler = QueryHandler(rag_service, session_store)
        session_id = session_store.create_session()

        response = handler.ask(session_id, "What happened?")

        assert response.session_id == session_id
        assert response.user_message == "What happened?"
        assert response.bot_response == "answer to What happened?"
        assert response.timestamp

        history = session_store.get_history(session_id)
        assert [(m.user, m.bot) for m in history] == [("What happened?", "answer to What happened?")]

    def test_payload_shape(self, rag_service, session_store):
        handler = QueryHandler(rag_service, session_store)
        session_id = session_store.create_session()

        payload = handler.ask(session_id, "q").to_payload()

        assert set(payload.keys()) == {'userMessage', 'botResponse', 'timestamp'}

    def test_unknown_session_skips_generation(self, rag_service, session_store):
        handler = QueryHandler(rag_service, session_store)

        with pytest.raises(SessionNotFoundError):
            handler.ask("missing", "q")

        rag_service.process_query.assert_not_called()

    def test_empty_message_not_recorded(self, rag_service, session_store):
        rag_service.process_query.side_effect = ValueError("Question cannot be empty")
        handler = QueryHandler(rag_service, session_store)
        session_id = session_store.create_session()

        with pytest.raises(ValueError):
            handler.ask(session_id, "")

        assert session_store.get_history(session_id) == []

"""
Query Handler

Answers a user message inside a session and records the exchange.
"""

import logging
from datetime import datetime

from ..models import ChatResponse
from ..sessions.session_store import SessionNotFoundError, SessionStore
from .rag_service import RAGService

logger = logging.getLogger(__name__)


class QueryHandler:
    """Couples the RAG pipeline with session history."""

    def __init__(self, rag_service: RAGService, session_store: SessionStore):
        self.rag_service = rag_service
        self.session_store = session_store

    def ask(self, session_id: str, message: str) -> ChatResponse:
        """
        Answer ``message`` and append the exchange to the session's history.

        Args:
            session_id: Target session
            message: User's question

        Returns:
            ChatResponse with the answer and its timestamp

        Raises:
            SessionNotFoundError: If the session does not exist or has expired
            ValueError: If the message is empty
        """
        # Fail before paying for retrieval and generation
        if self.session_store.get_session(session_id) is None:
            raise SessionNotFoundError(session_id)

        logger.info(f"Processing message in session {session_id}")
        answer = self.rag_service.process_query(message)
        logger.debug(f"Generated response length: {len(answer)}")

        self.session_store.append_message(session_id, message, answer)

        return ChatResponse(
            session_id=session_id,
            user_message=message,
            bot_response=answer,
            timestamp=datetime.now().isoformat()
        )

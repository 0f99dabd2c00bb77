"""
Core Data Types

Structured records shared across ingestion, retrieval and sessions.
"""

import hashlib
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional


DEFAULT_TITLE = "Untitled"
DEFAULT_CONTENT = "No content available"
DEFAULT_SOURCE = "Unknown source"


def make_document_id(source: str, url: str, title: str) -> str:
    """Derive a stable 16-hex-char id from the identifying fields."""
    digest = hashlib.sha256(f"{source}|{url}|{title}".encode('utf-8')).hexdigest()
    return digest[:16]


@dataclass(frozen=True)
class Document:
    """A single news article. Immutable once ingested."""
    id: str
    title: str
    content: str
    url: str = ""
    publish_date: str = ""
    source: str = DEFAULT_SOURCE

    @classmethod
    def create(
        cls,
        title: Optional[str] = None,
        content: Optional[str] = None,
        url: Optional[str] = None,
        publish_date: Optional[str] = None,
        source: Optional[str] = None,
    ) -> "Document":
        """
        Build a Document, applying defaults for every missing field.

        Args:
            title: Article headline
            content: Article body or summary
            url: Link to the article
            publish_date: Publication timestamp as provided by the feed
            source: Name of the publishing feed

        Returns:
            Document with no optional fields left empty where a default exists
        """
        title = (title or "").strip() or DEFAULT_TITLE
        content = (content or "").strip() or DEFAULT_CONTENT
        url = (url or "").strip()
        publish_date = str(publish_date or "").strip()
        source = (source or "").strip() or DEFAULT_SOURCE
        return cls(
            id=make_document_id(source, url, title),
            title=title,
            content=content,
            url=url,
            publish_date=publish_date,
            source=source,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Load a Document from its cached JSON form."""
        document = cls.create(
            title=data.get('title'),
            content=data.get('content'),
            url=data.get('url'),
            publish_date=data.get('publishDate', data.get('publish_date')),
            source=data.get('source'),
        )
        if data.get('id'):
            document = replace(document, id=str(data['id']))
        return document

    def to_dict(self) -> Dict[str, str]:
        """Serialize to the cache file's JSON form."""
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'url': self.url,
            'publishDate': self.publish_date,
            'source': self.source,
        }

    def embedding_text(self, max_chars: int) -> str:
        """Text sent to the embedding provider, truncated to max_chars."""
        return f"{self.title} {self.content}"[:max_chars]


@dataclass(frozen=True)
class RetrievalResult:
    """A retrieved document with its cosine similarity score."""
    document: Document
    score: float


@dataclass(frozen=True)
class Message:
    """One question/answer exchange inside a session."""
    timestamp: str
    user: str
    bot: str

    def to_dict(self) -> Dict[str, str]:
        return {'timestamp': self.timestamp, 'user': self.user, 'bot': self.bot}


@dataclass
class Session:
    """
    Conversation state owned by the SessionStore.

    ``expires_at`` is a monotonic-clock deadline fixed at creation.
    """
    id: str
    created_at: datetime
    last_activity: datetime
    expires_at: float
    messages: List[Message] = field(default_factory=list)

    def snapshot(self) -> "Session":
        """Copy safe to hand to callers outside the store's lock."""
        return Session(
            id=self.id,
            created_at=self.created_at,
            last_activity=self.last_activity,
            expires_at=self.expires_at,
            messages=list(self.messages),
        )


@dataclass(frozen=True)
class ChatResponse:
    """Answer produced for one message of a session."""
    session_id: str
    user_message: str
    bot_response: str
    timestamp: str

    def to_payload(self) -> Dict[str, str]:
        """Payload of the ``bot-response`` channel event."""
        return {
            'userMessage': self.user_message,
            'botResponse': self.bot_response,
            'timestamp': self.timestamp,
        }

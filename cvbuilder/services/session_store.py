"""
Session storage for CV conversations.

Two backends share one interface: an in-memory store (default, lives as long
as the process) and a Redis store for deployments that run several workers.
Every read hands out a copy, so callers never mutate stored state in place.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from redis.exceptions import RedisError

from ..core.errors import SessionNotFound
from ..schemas.session import ChatMessage, Session, StageStatus

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return uuid.uuid4().hex


class SessionStore(ABC):
    """Keyed by session id; each operation is atomic for its key."""

    @abstractmethod
    def create_session(self, session_id: Optional[str] = None) -> Session:
        ...

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    def update_session(self, session_id: str, **changes: Any) -> Session:
        """Apply field changes and return the updated copy. Raises SessionNotFound."""

    @abstractmethod
    def save_message(self, session_id: str, message: ChatMessage) -> None:
        ...

    @abstractmethod
    def get_messages(self, session_id: str) -> List[ChatMessage]:
        """Messages in insertion order."""

    def require_session(self, session_id: str) -> Session:
        session = self.get_session(session_id)
        if session is None:
            raise SessionNotFound(f"Session {session_id} not found")
        return session


class InMemorySessionStore(SessionStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}
        self._messages: Dict[str, List[ChatMessage]] = {}

    def create_session(self, session_id: Optional[str] = None) -> Session:
        session = Session(
            session_id=session_id or new_session_id(),
            status=StageStatus.STARTED,
        )
        with self._lock:
            self._sessions[session.session_id] = session
            self._messages[session.session_id] = []
        logger.info(f"[STORE] Created session {session.session_id}")
        return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy(deep=True) if session else None

    def update_session(self, session_id: str, **changes: Any) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(f"Session {session_id} not found")
            updated = session.model_copy(update=changes, deep=True)
            self._sessions[session_id] = updated
            return updated.model_copy(deep=True)

    def save_message(self, session_id: str, message: ChatMessage) -> None:
        with self._lock:
            self._messages.setdefault(session_id, []).append(
                message.model_copy(deep=True)
            )

    def get_messages(self, session_id: str) -> List[ChatMessage]:
        with self._lock:
            return [m.model_copy(deep=True) for m in self._messages.get(session_id, [])]


class RedisSessionStore(SessionStore):
    """
    One JSON blob per session plus a Redis list per transcript.
    RPUSH keeps insertion order; LRANGE replays it.
    """

    KEY_PREFIX = "cvbuilder"

    def __init__(self, client, ttl_seconds: int = 0):
        self._client = client
        self._ttl = ttl_seconds
        # update_session is read-modify-write; serialize it within this process
        self._lock = threading.Lock()

    def _session_key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}:session:{session_id}"

    def _messages_key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}:messages:{session_id}"

    def _write(self, session: Session) -> None:
        key = self._session_key(session.session_id)
        payload = session.model_dump_json()
        if self._ttl > 0:
            self._client.setex(key, self._ttl, payload)
        else:
            self._client.set(key, payload)

    def create_session(self, session_id: Optional[str] = None) -> Session:
        session = Session(
            session_id=session_id or new_session_id(),
            status=StageStatus.STARTED,
        )
        try:
            self._write(session)
        except RedisError as e:
            logger.error(f"[STORE] Redis write failed for new session: {str(e)}")
            raise
        logger.info(f"[STORE] Created session {session.session_id} in Redis")
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        raw = self._client.get(self._session_key(session_id))
        if not raw:
            return None
        return Session.model_validate_json(raw)

    def update_session(self, session_id: str, **changes: Any) -> Session:
        with self._lock:
            session = self.get_session(session_id)
            if session is None:
                raise SessionNotFound(f"Session {session_id} not found")
            updated = session.model_copy(update=changes, deep=True)
            self._write(updated)
            return updated

    def save_message(self, session_id: str, message: ChatMessage) -> None:
        key = self._messages_key(session_id)
        pipe = self._client.pipeline()
        pipe.rpush(key, message.model_dump_json())
        if self._ttl > 0:
            pipe.expire(key, self._ttl)
        pipe.execute()

    def get_messages(self, session_id: str) -> List[ChatMessage]:
        raw_messages = self._client.lrange(self._messages_key(session_id), 0, -1)
        return [ChatMessage.model_validate_json(raw) for raw in raw_messages]

"""
Conversation orchestration: ties the session store, the assistant gateway
and the stage classifier together for each inbound user message.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import settings
from ..core.errors import AssistantGatewayError, SessionNotInitialized
from ..schemas.session import ChatMessage, Session, StageStatus
from ..services.assistant_gateway import AssistantGateway
from ..services.session_store import SessionStore
from ..services.stage_classifier import RegexStageClassifier, StageClassifier
from ..utils.token_guard import enforce_payload_limit
from ..workflows.turn_graph import build_turn_graph

logger = logging.getLogger(__name__)


@dataclass
class TurnOutcome:
    messages: List[ChatMessage]
    status: StageStatus
    cv_data: Optional[Dict[str, Any]]
    completed: bool


class ConversationService:

    def __init__(
        self,
        store: SessionStore,
        gateway: AssistantGateway,
        classifier: Optional[StageClassifier] = None,
        max_message_chars: Optional[int] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.classifier = classifier or RegexStageClassifier()
        self.max_message_chars = max_message_chars or settings.max_message_chars
        self._graph = build_turn_graph(self.gateway, self.classifier)

        # One turn in flight per session
        self._locks_guard = threading.Lock()
        self._turn_locks: Dict[str, threading.Lock] = {}

    def _turn_lock(self, session_id: str) -> threading.Lock:
        # Unknown ids raise here, so only stored sessions ever get a lock
        self.store.require_session(session_id)
        with self._locks_guard:
            lock = self._turn_locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._turn_locks[session_id] = lock
            return lock

    # --------------------------
    # Sessions
    # --------------------------

    def create_session(self) -> str:
        return self.store.create_session().session_id

    def get_session(self, session_id: str) -> Session:
        return self.store.require_session(session_id)

    def get_messages(self, session_id: str) -> List[ChatMessage]:
        self.store.require_session(session_id)
        return self.store.get_messages(session_id)

    # --------------------------
    # Conversation
    # --------------------------

    def start_conversation(self, session_id: str, credential: str) -> Tuple[str, str]:
        with self._turn_lock(session_id):
            session = self.store.require_session(session_id)
            if session.initialized:
                return session.assistant_id, session.thread_id

            try:
                assistant_id = self.gateway.create_assistant(credential)
                thread_id = self.gateway.create_thread(credential)
            except AssistantGatewayError:
                logger.exception(f"[TURN] Could not start conversation for session {session_id}")
                raise

            self.store.update_session(
                session_id,
                assistant_id=assistant_id,
                thread_id=thread_id,
                status=StageStatus.COLLECTING_PROFESSION,
            )
            return assistant_id, thread_id

    def send_message(
        self,
        session_id: str,
        credential: str,
        message: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> TurnOutcome:
        with self._turn_lock(session_id):
            session = self.store.require_session(session_id)
            if not session.initialized:
                raise SessionNotInitialized(f"Session {session_id} has no assistant thread")

            self.store.save_message(session_id, ChatMessage(role="user", content=message))

            try:
                turn = self._graph.invoke({
                    "credential": credential,
                    "thread_id": session.thread_id,
                    "assistant_id": session.assistant_id,
                    "user_text": enforce_payload_limit(message, self.max_message_chars),
                    "cancel_event": cancel_event,
                })
            except AssistantGatewayError:
                logger.exception(f"[TURN] Assistant turn failed for session {session_id}")
                raise

            session = self.store.update_session(session_id, **self._session_changes(turn))

            assistant_message = turn.get("assistant_message")
            if assistant_message and assistant_message.strip():
                self.store.save_message(
                    session_id,
                    ChatMessage(role="assistant", content=assistant_message),
                )

            logger.info(f"[TURN] Session {session_id} now '{session.status.value}'")
            return TurnOutcome(
                messages=self.store.get_messages(session_id),
                status=session.status,
                cv_data=session.cv_data,
                completed=session.completed,
            )

    @staticmethod
    def _session_changes(turn: Dict[str, Any]) -> Dict[str, Any]:
        """Only non-null results overwrite the session; everything else is kept."""
        changes: Dict[str, Any] = {}
        if turn.get("cv_data") is not None:
            changes["cv_data"] = turn["cv_data"]
        if turn.get("completed"):
            changes["completed"] = True
        for field in ("status", "profession", "sections"):
            if turn.get(field) is not None:
                changes[field] = turn[field]
        return changes

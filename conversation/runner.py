"""Drives one intake conversation: transcript, composing guard, persistence hand-off."""
from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from config.settings import settings
from observability.tracing import span

from .engine import INITIAL_MESSAGE, advance
from .state import CandidateProfile, ChatMessage, ConversationState, Step

if TYPE_CHECKING:  # services.persistence imports conversation.state
    from services.persistence import PersistWorker


logger = logging.getLogger(__name__)


class ConversationBusyError(RuntimeError):  # Raised when input arrives while a reply is composing
    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation {conversation_id} is composing a reply")
        self.conversation_id = conversation_id


class ConversationNotFoundError(KeyError):  # Raised when a conversation id is unknown
    pass


class Conversation:
    """A single candidate's conversation.

    The greeting is appended on construction. ``submit`` is not re-entrant:
    a second submission while a reply is composing raises
    :class:`ConversationBusyError` and leaves the transcript untouched.
    """

    def __init__(
        self,
        worker: PersistWorker,
        *,
        compose_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._state = ConversationState()
        self._messages: List[ChatMessage] = [
            ChatMessage(role="assistant", content=INITIAL_MESSAGE)
        ]
        self._worker = worker
        self._compose_delay = compose_delay
        self._sleep = sleep
        self._busy = threading.Lock()
        self._composing = False
        self._session_id: Optional[int] = None
        self._last_active = time.monotonic()
        self.events: List[Dict[str, object]] = []

    @property
    def conversation_id(self) -> str:
        return self._state.conversation_id

    @property
    def step(self) -> Step:
        return self._state.step

    @property
    def profile(self) -> CandidateProfile:
        return self._state.profile.model_copy(deep=True)

    @property
    def state(self) -> ConversationState:
        return self._state.model_copy(deep=True)

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def composing(self) -> bool:
        return self._composing

    @property
    def session_id(self) -> Optional[int]:
        return self._session_id

    def idle_for(self, now: Optional[float] = None) -> float:
        return (time.monotonic() if now is None else now) - self._last_active

    def _on_created(self, session_id: int) -> None:
        self._session_id = session_id

    def submit(self, text: str) -> ChatMessage:
        """Record the candidate's input and return the assistant reply."""

        if not text or not text.strip():
            raise ValueError("Message text is required.")
        if not self._busy.acquire(blocking=False):
            raise ConversationBusyError(self.conversation_id)
        try:
            previous = self._state.step
            self._messages.append(ChatMessage(role="user", content=text))
            self._composing = True
            with span(self.events, "compose"):
                delay = (
                    settings.COMPOSE_DELAY_SECONDS
                    if self._compose_delay is None
                    else self._compose_delay
                )
                if delay > 0:
                    self._sleep(delay)
                transition = advance(self._state, text)
            reply = ChatMessage(role="assistant", content=transition.reply)
            self._messages.append(reply)
            self._state = transition.state
            self._last_active = time.monotonic()
            if transition.intents:
                self._worker.submit(transition.intents, on_created=self._on_created)
            if transition.step is Step.CLOSING and previous is not Step.CLOSING:
                self._worker.release(self.conversation_id)
            return reply
        finally:
            self._composing = False
            self._busy.release()


class ConversationRegistry:
    """Thread-safe in-memory conversation lookup.

    Conversations idle for ``CONVERSATION_TTL_SECONDS`` are evicted whenever a
    new one starts.
    """

    def __init__(self, worker: PersistWorker) -> None:
        self._worker = worker
        self._conversations: Dict[str, Conversation] = {}
        self._lock = threading.RLock()

    def start(self) -> Conversation:
        self.prune()
        conversation = Conversation(self._worker)
        with self._lock:
            self._conversations[conversation.conversation_id] = conversation
        logger.info("Started conversation %s", conversation.conversation_id)
        return conversation

    def get(self, conversation_id: str) -> Conversation:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def discard(self, conversation_id: str) -> None:
        with self._lock:
            conversation = self._conversations.pop(conversation_id, None)
        if conversation is not None and conversation.step is not Step.CLOSING:
            self._worker.release(conversation_id)

    def prune(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = [
                cid
                for cid, conversation in self._conversations.items()
                if not conversation.composing
                and conversation.idle_for(now) >= settings.CONVERSATION_TTL_SECONDS
            ]
        for cid in expired:
            self.discard(cid)
        if expired:
            logger.info("Evicted %d idle conversations", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._conversations)


__all__ = [
    "Conversation",
    "ConversationBusyError",
    "ConversationNotFoundError",
    "ConversationRegistry",
]

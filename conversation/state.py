"""Conversation state owned by a single intake conversation."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from storage.models import QAPair

Role = Literal["user", "assistant"]


class Step(str, Enum):
    GREETING = "GREETING"
    NAME = "NAME"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    EXPERIENCE = "EXPERIENCE"
    POSITION = "POSITION"
    LOCATION = "LOCATION"
    TECH_STACK = "TECH_STACK"
    QUESTIONS = "QUESTIONS"
    CLOSING = "CLOSING"


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatMessage(BaseModel):
    """A single transcript entry; never edited once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class CandidateProfile(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    experience: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list)


class PersistIntent(BaseModel):
    """Best-effort write the engine asks the persistence worker to perform."""

    kind: Literal["create", "patch"]
    conversation_id: str
    fields: Dict[str, Any] = Field(default_factory=dict)


class ConversationState(BaseModel):
    """Everything the engine reads and writes for one conversation."""

    conversation_id: str = Field(default_factory=_new_id)
    step: Step = Step.NAME
    profile: CandidateProfile = Field(default_factory=CandidateProfile)
    question_queue: List[str] = Field(default_factory=list)
    question_index: int = Field(default=0, ge=0)
    responses: List[QAPair] = Field(default_factory=list)
    session_requested: bool = False

    @property
    def current_question(self) -> Optional[str]:
        if self.question_index < len(self.question_queue):
            return self.question_queue[self.question_index]
        return None


class Transition(BaseModel):
    """Outcome of one engine step; committed by the caller."""

    reply: str
    state: ConversationState
    intents: List[PersistIntent] = Field(default_factory=list)

    @property
    def step(self) -> Step:
        return self.state.step


__all__ = [
    "CandidateProfile",
    "ChatMessage",
    "ConversationState",
    "PersistIntent",
    "Role",
    "Step",
    "Transition",
]

"""Pydantic schemas for the conversation API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from conversation.state import CandidateProfile, ChatMessage, Step
from storage.models import QAPair


class SubmitMessageReq(BaseModel):
    text: str = Field(min_length=1)


class ConversationResp(BaseModel):
    conversation_id: str
    step: Step
    messages: List[ChatMessage] = Field(default_factory=list)
    session_id: Optional[int] = None


class ConversationDetail(ConversationResp):
    profile: CandidateProfile
    question_queue: List[str] = Field(default_factory=list)
    responses: List[QAPair] = Field(default_factory=list)
    composing: bool = False

"""FastAPI routes that drive intake conversations over HTTP."""
from __future__ import annotations

import threading
from typing import Optional

from fastapi import APIRouter, HTTPException

from api.schemas import ConversationDetail, ConversationResp, SubmitMessageReq
from conversation import (
    Conversation,
    ConversationBusyError,
    ConversationNotFoundError,
    ConversationRegistry,
)
from services.persistence import LocalSessionGateway, PersistWorker


router = APIRouter(prefix="/conversations", tags=["conversations"])

_registry: Optional[ConversationRegistry] = None
_registry_guard = threading.Lock()


def get_registry() -> ConversationRegistry:
    global _registry
    with _registry_guard:
        if _registry is None:
            worker = PersistWorker(LocalSessionGateway()).start()
            _registry = ConversationRegistry(worker)
        return _registry


def _load(conversation_id: str) -> Conversation:
    try:
        return get_registry().get(conversation_id)
    except ConversationNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Conversation not found") from exc


@router.post("", response_model=ConversationResp)
def start_conversation() -> ConversationResp:
    conversation = get_registry().start()
    return ConversationResp(
        conversation_id=conversation.conversation_id,
        step=conversation.step,
        messages=list(conversation.messages),
    )


@router.post("/{conversation_id}/messages", response_model=ConversationResp)
def submit_message(conversation_id: str, req: SubmitMessageReq) -> ConversationResp:
    conversation = _load(conversation_id)
    before = len(conversation.messages)
    try:
        conversation.submit(req.text)
    except ConversationBusyError as exc:
        raise HTTPException(status_code=409, detail="A reply is still being composed") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ConversationResp(
        conversation_id=conversation.conversation_id,
        step=conversation.step,
        messages=list(conversation.messages[before:]),
        session_id=conversation.session_id,
    )


@router.get("/{conversation_id}", response_model=ConversationDetail)
def get_conversation(conversation_id: str) -> ConversationDetail:
    conversation = _load(conversation_id)
    state = conversation.state
    return ConversationDetail(
        conversation_id=conversation.conversation_id,
        step=state.step,
        messages=list(conversation.messages),
        session_id=conversation.session_id,
        profile=state.profile,
        question_queue=state.question_queue,
        responses=state.responses,
        composing=conversation.composing,
    )

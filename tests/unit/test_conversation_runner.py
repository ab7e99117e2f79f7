import threading
import time

import pytest

from config.settings import settings
from conversation import (
    Conversation,
    ConversationBusyError,
    ConversationNotFoundError,
    ConversationRegistry,
    INITIAL_MESSAGE,
    Step,
)
from conversation.engine import CLOSING_MESSAGE

PROFILE_ANSWERS = ["Grace Hopper", "grace@example.com", "555-0100", "30", "Compiler Lead", "Arlington"]


class RecordingWorker:
    def __init__(self):
        self.intents = []
        self.released = []

    def submit(self, intents, on_created=None):
        self.intents.extend(intents)

    def release(self, conversation_id):
        self.released.append(conversation_id)


def test_greeting_shown_at_start():
    conversation = Conversation(RecordingWorker())
    assert conversation.step is Step.NAME
    assert [(m.role, m.content) for m in conversation.messages] == [("assistant", INITIAL_MESSAGE)]


def test_each_submission_appends_user_then_assistant():
    conversation = Conversation(RecordingWorker())
    reply = conversation.submit("Grace Hopper")
    roles = [m.role for m in conversation.messages]
    assert roles == ["assistant", "user", "assistant"]
    assert conversation.messages[1].content == "Grace Hopper"
    assert conversation.messages[-1] == reply
    assert conversation.step is Step.EMAIL
    assert conversation.messages[1].timestamp <= reply.timestamp


def test_blank_input_rejected_without_transcript_change():
    conversation = Conversation(RecordingWorker())
    with pytest.raises(ValueError):
        conversation.submit("   ")
    assert len(conversation.messages) == 1
    assert conversation.step is Step.NAME


def test_intents_handed_to_worker_after_transition():
    worker = RecordingWorker()
    conversation = Conversation(worker)
    for text in PROFILE_ANSWERS + ["typescript", "one", "two"]:
        conversation.submit(text)
    assert [i.kind for i in worker.intents] == ["create", "patch", "patch", "patch", "patch"]
    assert worker.intents[-1].fields == {"status": "completed"}
    assert conversation.messages[-1].content == CLOSING_MESSAGE
    assert conversation.step is Step.CLOSING


def test_submission_while_composing_is_rejected():
    entered = threading.Event()
    release = threading.Event()

    def slow_sleep(_seconds):
        entered.set()
        release.wait(timeout=5)

    conversation = Conversation(RecordingWorker(), compose_delay=1.0, sleep=slow_sleep)
    first = threading.Thread(target=conversation.submit, args=("Grace Hopper",))
    first.start()
    assert entered.wait(timeout=5)
    assert conversation.composing is True

    with pytest.raises(ConversationBusyError):
        conversation.submit("interleaved")

    release.set()
    first.join(timeout=5)
    assert conversation.composing is False
    contents = [m.content for m in conversation.messages]
    assert "interleaved" not in contents
    assert conversation.step is Step.EMAIL
    assert conversation.profile.name == "Grace Hopper"


def test_compose_span_recorded():
    conversation = Conversation(RecordingWorker(), compose_delay=0)
    conversation.submit("Grace Hopper")
    assert conversation.events[-1]["span"] == "compose"


def test_worker_released_once_when_conversation_closes():
    worker = RecordingWorker()
    conversation = Conversation(worker)
    for text in PROFILE_ANSWERS + ["typescript", "one", "two"]:
        conversation.submit(text)
    conversation.submit("anything else?")
    assert worker.released == [conversation.conversation_id]


def test_registry_evicts_idle_conversations(monkeypatch):
    monkeypatch.setattr(settings, "CONVERSATION_TTL_SECONDS", 60.0)
    worker = RecordingWorker()
    registry = ConversationRegistry(worker)
    closed = registry.start()
    for text in PROFILE_ANSWERS + ["typescript", "one", "two"]:
        closed.submit(text)
    abandoned = registry.start()
    abandoned.submit("Grace Hopper")
    fresh = registry.start()

    assert registry.prune(now=time.monotonic() + 30) == 0
    assert len(registry) == 3

    assert registry.prune(now=time.monotonic() + 120) == 3
    assert len(registry) == 0
    with pytest.raises(ConversationNotFoundError):
        registry.get(fresh.conversation_id)
    # closed conversations already released their worker entry
    assert sorted(worker.released) == sorted(
        [closed.conversation_id, abandoned.conversation_id, fresh.conversation_id]
    )


def test_registry_start_prunes_expired(monkeypatch):
    monkeypatch.setattr(settings, "CONVERSATION_TTL_SECONDS", 0.0)
    registry = ConversationRegistry(RecordingWorker())
    first = registry.start()
    second = registry.start()
    assert len(registry) == 1
    assert registry.get(second.conversation_id) is second
    with pytest.raises(ConversationNotFoundError):
        registry.get(first.conversation_id)

import pytest

from config.settings import settings
from conversation.engine import (
    CLOSING_MESSAGE,
    RESTART_MESSAGE,
    SESSION_ENDED_MESSAGE,
    advance,
)
from conversation.state import ConversationState, Step
from question_bank import QUESTION_BANK

PROFILE_ANSWERS = [
    "Ada Lovelace",
    "ada@example.com",
    "+44 1234",
    "7",
    "Backend Engineer",
    "London",
]


def _run(state, inputs):
    transitions = []
    for text in inputs:
        transition = advance(state, text)
        transitions.append(transition)
        state = transition.state
    return state, transitions


def test_profile_capture_then_tech_stack():
    state, transitions = _run(ConversationState(), PROFILE_ANSWERS + ["Python, React"])

    profile = state.profile
    assert profile.name == "Ada Lovelace"
    assert profile.email == "ada@example.com"
    assert profile.phone == "+44 1234"
    assert profile.experience == "7"
    assert profile.position == "Backend Engineer"
    assert profile.location == "London"
    assert profile.tech_stack == ["python", "react"]
    assert len(state.question_queue) == 4
    assert state.step is Step.QUESTIONS
    assert transitions[0].reply == "Nice to meet you, Ada Lovelace. What is your email address?"
    assert transitions[-1].reply.endswith(f"First Question: {QUESTION_BANK['python'][0]}")


@pytest.mark.parametrize(
    "stack, expected",
    [
        ("unknownlang", 4),
        ("python", 2),
        ("python, react, sql", 5),
        ("python, python, python", 5),
    ],
)
def test_queue_length(stack, expected):
    state, _ = _run(ConversationState(), PROFILE_ANSWERS + [stack])
    assert len(state.question_queue) == expected


def test_input_state_is_not_mutated():
    state = ConversationState()
    transition = advance(state, "Ada")
    assert state.step is Step.NAME
    assert state.profile.name is None
    assert transition.state.profile.name == "Ada"
    assert transition.step is Step.EMAIL


def test_create_intent_emitted_once_at_location():
    state, transitions = _run(ConversationState(), PROFILE_ANSWERS)
    kinds = [[intent.kind for intent in t.intents] for t in transitions]
    assert kinds == [[], [], [], [], [], ["create"]]
    create = transitions[-1].intents[0]
    assert create.conversation_id == state.conversation_id
    assert create.fields["name"] == "Ada Lovelace"
    assert create.fields["location"] == "London"
    assert create.fields["responses"] == []
    assert create.fields["status"] == "in_progress"


def test_answering_all_questions_reaches_closing_once():
    state, _ = _run(ConversationState(), PROFILE_ANSWERS + ["python, react"])
    queue = list(state.question_queue)
    closing_count = 0
    for index, question in enumerate(queue):
        transition = advance(state, f"answer {index}")
        state = transition.state
        assert len(state.responses) == index + 1
        assert state.responses[-1].question == question
        if transition.step is Step.CLOSING:
            closing_count += 1
            assert transition.reply == CLOSING_MESSAGE
            assert [i.kind for i in transition.intents] == ["patch", "patch"]
            assert transition.intents[-1].fields == {"status": "completed"}
        else:
            assert transition.reply == f"Thank you. Next question:\n\n{queue[index + 1]}"
    assert closing_count == 1
    assert state.step is Step.CLOSING
    assert len(state.responses) == len(queue)
    assert state.question_queue == queue


def test_response_patch_carries_full_log():
    state, _ = _run(ConversationState(), PROFILE_ANSWERS + ["sql"])
    state, transitions = _run(state, ["first", "second"])
    patch = transitions[-1].intents[0]
    assert patch.fields["responses"] == [
        {"question": QUESTION_BANK["sql"][0], "answer": "first"},
        {"question": QUESTION_BANK["sql"][1], "answer": "second"},
    ]


def test_closing_is_terminal():
    state, _ = _run(ConversationState(), PROFILE_ANSWERS + ["java", "a1", "a2"])
    assert state.step is Step.CLOSING
    for text in ("hello?", "anyone there", ""):
        transition = advance(state, text)
        assert transition.reply == SESSION_ENDED_MESSAGE
        assert transition.intents == []
        assert transition.state.model_dump(exclude={"conversation_id"}) == state.model_dump(
            exclude={"conversation_id"}
        )
        state = transition.state


def test_unrecognized_step_resets_to_name_and_keeps_profile():
    state, _ = _run(ConversationState(), PROFILE_ANSWERS[:3])
    state.step = Step.GREETING
    transition = advance(state, "whatever")
    assert transition.reply == RESTART_MESSAGE
    assert transition.step is Step.NAME
    assert transition.intents == []
    assert transition.state.profile == state.profile


def test_no_second_create_after_soft_reset():
    state, _ = _run(ConversationState(), PROFILE_ANSWERS)
    state.step = Step.GREETING
    state, transitions = _run(state, ["reset"] + PROFILE_ANSWERS)
    assert all(intent.kind != "create" for t in transitions for intent in t.intents)


def test_settings_control_queue_size(monkeypatch):
    monkeypatch.setattr(settings, "MAX_QUESTIONS", 3)
    monkeypatch.setattr(settings, "QUESTIONS_PER_SKILL", 1)
    state, _ = _run(ConversationState(), PROFILE_ANSWERS + ["python, react, sql, java"])
    assert state.question_queue == [
        QUESTION_BANK["python"][0],
        QUESTION_BANK["react"][0],
        QUESTION_BANK["sql"][0],
    ]

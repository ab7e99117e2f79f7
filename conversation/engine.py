"""Scripted intake state machine.

``advance`` takes the current :class:`ConversationState` and the candidate's
input and returns a :class:`Transition` holding the assistant reply, the next
state and any persistence intents. The input state is never modified; the
caller commits ``Transition.state`` once the reply has been shown.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from config.settings import settings
from observability.logger import log_event
from question_bank import build_question_queue, parse_tech_stack
from storage.models import QAPair

from .state import ConversationState, PersistIntent, Step, Transition


logger = logging.getLogger(__name__)

INITIAL_MESSAGE = (
    "Hello! I'm TalentScout AI, your hiring assistant. I'm here to help you with your "
    "initial screening. To get started, could you please tell me your full name?"
)
EMAIL_PROMPT = "Nice to meet you, {name}. What is your email address?"
PHONE_PROMPT = "Got it. What is your phone number?"
EXPERIENCE_PROMPT = "Thanks. How many years of experience do you have in the tech industry?"
POSITION_PROMPT = "Impressive. What position(s) are you applying for?"
LOCATION_PROMPT = "And where are you currently located?"
TECH_STACK_PROMPT = (
    "Great. Now, please list your Tech Stack (programming languages, frameworks, tools, etc.) "
    "separated by commas."
)
FIRST_QUESTION_PROMPT = (
    "Thank you. Based on your skills, I have a few technical questions for you.\n\n"
    "First Question: {question}"
)
NEXT_QUESTION_PROMPT = "Thank you. Next question:\n\n{question}"
CLOSING_MESSAGE = (
    "Thank you for answering those questions. That concludes our initial screening. "
    "Our recruitment team will review your responses and get back to you shortly. "
    "Have a great day!"
)
SESSION_ENDED_MESSAGE = "The session has ended. You can close this window."
RESTART_MESSAGE = "I'm not sure how to proceed. Let's start over."

Handler = Callable[[ConversationState, str], Tuple[str, Step, List[PersistIntent]]]


def _patch(state: ConversationState, **fields) -> PersistIntent:
    return PersistIntent(kind="patch", conversation_id=state.conversation_id, fields=fields)


def _on_name(state: ConversationState, text: str):
    state.profile.name = text
    return EMAIL_PROMPT.format(name=text), Step.EMAIL, []


def _on_email(state: ConversationState, text: str):
    state.profile.email = text
    return PHONE_PROMPT, Step.PHONE, []


def _on_phone(state: ConversationState, text: str):
    state.profile.phone = text
    return EXPERIENCE_PROMPT, Step.EXPERIENCE, []


def _on_experience(state: ConversationState, text: str):
    state.profile.experience = text
    return POSITION_PROMPT, Step.POSITION, []


def _on_position(state: ConversationState, text: str):
    state.profile.position = text
    return LOCATION_PROMPT, Step.LOCATION, []


def _on_location(state: ConversationState, text: str):
    state.profile.location = text
    intents: List[PersistIntent] = []
    # one durable session per conversation, even after a soft reset
    if not state.session_requested:
        state.session_requested = True
        profile = state.profile
        intents.append(
            PersistIntent(
                kind="create",
                conversation_id=state.conversation_id,
                fields={
                    "name": profile.name,
                    "email": profile.email,
                    "phone": profile.phone,
                    "experience": profile.experience,
                    "position": profile.position,
                    "location": profile.location,
                    "tech_stack": list(profile.tech_stack),
                    "responses": [],
                    "status": "in_progress",
                },
            )
        )
    return TECH_STACK_PROMPT, Step.TECH_STACK, intents


def _on_tech_stack(state: ConversationState, text: str):
    skills = parse_tech_stack(text)
    state.profile.tech_stack = skills
    state.question_queue = build_question_queue(
        skills,
        per_skill=settings.QUESTIONS_PER_SKILL,
        limit=settings.MAX_QUESTIONS,
    )
    state.question_index = 0
    reply = FIRST_QUESTION_PROMPT.format(question=state.question_queue[0])
    return reply, Step.QUESTIONS, [_patch(state, tech_stack=list(skills))]


def _on_answer(state: ConversationState, text: str):
    state.responses.append(QAPair(question=state.current_question or "", answer=text))
    intents = [_patch(state, responses=[pair.model_dump() for pair in state.responses])]
    state.question_index += 1
    question = state.current_question
    if question is not None:
        return NEXT_QUESTION_PROMPT.format(question=question), Step.QUESTIONS, intents
    intents.append(_patch(state, status="completed"))
    return CLOSING_MESSAGE, Step.CLOSING, intents


def _on_closed(state: ConversationState, text: str):
    return SESSION_ENDED_MESSAGE, Step.CLOSING, []


TRANSITIONS: Dict[Step, Handler] = {
    Step.NAME: _on_name,
    Step.EMAIL: _on_email,
    Step.PHONE: _on_phone,
    Step.EXPERIENCE: _on_experience,
    Step.POSITION: _on_position,
    Step.LOCATION: _on_location,
    Step.TECH_STACK: _on_tech_stack,
    Step.QUESTIONS: _on_answer,
    Step.CLOSING: _on_closed,
}


def _restart(state: ConversationState) -> Tuple[str, Step, List[PersistIntent]]:
    # Only reachable through a bug; captured profile fields are kept.
    logger.warning(
        "Unrecognized step %r for conversation %s; restarting at NAME",
        state.step,
        state.conversation_id,
    )
    return RESTART_MESSAGE, Step.NAME, []


def advance(state: ConversationState, text: str) -> Transition:
    """Apply one candidate submission and return the resulting transition."""

    working = state.model_copy(deep=True)
    handler: Optional[Handler] = TRANSITIONS.get(working.step)
    if handler is None:
        reply, next_step, intents = _restart(working)
    else:
        reply, next_step, intents = handler(working, text)
    log_event(
        "engine.transition",
        working.conversation_id,
        step=getattr(state.step, "value", state.step),
        next_step=next_step.value,
        intent=[intent.kind for intent in intents] or None,
    )
    working.step = next_step
    return Transition(reply=reply, state=working, intents=intents)


__all__ = [
    "CLOSING_MESSAGE",
    "INITIAL_MESSAGE",
    "RESTART_MESSAGE",
    "SESSION_ENDED_MESSAGE",
    "TRANSITIONS",
    "advance",
]

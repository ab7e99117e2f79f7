"""Scripted intake conversation: state, transition engine and runner."""
from .state import CandidateProfile, ChatMessage, ConversationState, PersistIntent, Step, Transition
from .engine import INITIAL_MESSAGE, advance
from .runner import Conversation, ConversationBusyError, ConversationNotFoundError, ConversationRegistry

__all__ = [
    "CandidateProfile",
    "ChatMessage",
    "Conversation",
    "ConversationBusyError",
    "ConversationNotFoundError",
    "ConversationRegistry",
    "ConversationState",
    "INITIAL_MESSAGE",
    "PersistIntent",
    "Step",
    "Transition",
    "advance",
]

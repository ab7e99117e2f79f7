"""Static technical question bank keyed by skill token."""
from .bank import (
    DEFAULT_KEY,
    QUESTION_BANK,
    build_question_queue,
    lookup,
    parse_tech_stack,
)

__all__ = [
    "DEFAULT_KEY",
    "QUESTION_BANK",
    "build_question_queue",
    "lookup",
    "parse_tech_stack",
]

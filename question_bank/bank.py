"""Skill keyed question lookup and question-queue assembly."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

DEFAULT_KEY = "default"

QUESTION_BANK: Dict[str, tuple[str, ...]] = {
    "python": (
        "Explain the difference between `list` and `tuple` in Python.",
        "What are decorators in Python and how are they used?",
        "How does memory management work in Python?",
        "What is the difference between `deepcopy` and `copy`?",
    ),
    "javascript": (
        "What is the difference between `let`, `const`, and `var`?",
        "Explain the concept of closures in JavaScript.",
        "How does the Event Loop work?",
        "What is the difference between `==` and `===`?",
    ),
    "react": (
        "What are React Hooks and why do we use them?",
        "Explain the Virtual DOM and how it improves performance.",
        "What is the difference between State and Props?",
        "How do you handle side effects in React components?",
    ),
    "sql": (
        "What is the difference between INNER JOIN and LEFT JOIN?",
        "Explain ACID properties in databases.",
        "What is normalization and why is it important?",
        "How do you optimize a slow SQL query?",
    ),
    "java": (
        "What is the difference between an Interface and an Abstract Class?",
        "Explain the concept of Polymorphism in Java.",
        "How does Garbage Collection work in Java?",
        "What are the different types of memory areas allocated by JVM?",
    ),
    "node": (
        "What is the Event Loop in Node.js?",
        "Explain the difference between callbacks, promises, and async/await.",
        "How do you handle errors in Node.js?",
        "What is middleware in Express.js?",
    ),
    "typescript": (
        "What are the benefits of using TypeScript over JavaScript?",
        "Explain generics in TypeScript.",
        "What is the difference between `interface` and `type`?",
        "How does TypeScript's type inference work?",
    ),
    DEFAULT_KEY: (
        "Can you describe a challenging technical problem you solved recently?",
        "How do you stay updated with the latest technologies?",
        "What is your preferred development methodology (Agile, Scrum, etc.)?",
        "Describe a time you had to debug a complex issue.",
    ),
}

QUESTIONS_PER_SKILL = 2
MAX_QUESTIONS = 5


def lookup(skill: str) -> Optional[List[str]]:
    """Return the ordered questions for ``skill`` or ``None`` when unknown.

    Matching is exact; callers pass tokens already lowercased.
    """

    questions = QUESTION_BANK.get(skill)
    if questions is None:
        return None
    return list(questions)


def parse_tech_stack(raw: str) -> List[str]:
    """Split a comma separated skill list into trimmed lowercase tokens.

    Empty tokens (``"python,"``) are kept so the stored tech stack mirrors
    what the candidate typed; they never match a bank key.
    """

    return [token.strip().lower() for token in raw.split(",")]


def build_question_queue(
    skills: Sequence[str],
    *,
    per_skill: int = QUESTIONS_PER_SKILL,
    limit: int = MAX_QUESTIONS,
) -> List[str]:
    """Assemble the capped question queue for the declared skills.

    Skills are visited in input order and each known skill contributes its
    first ``per_skill`` questions; duplicates are not collapsed. When nothing
    matches, the whole default list is used instead. The result is truncated
    to ``limit`` entries, never more than ``MAX_QUESTIONS``.
    """

    selected: List[str] = []
    for skill in skills:
        questions = lookup(skill)
        if questions:
            selected.extend(questions[:per_skill])
    if not selected:
        selected = list(QUESTION_BANK[DEFAULT_KEY])
    return selected[: min(limit, MAX_QUESTIONS)]


__all__ = [
    "DEFAULT_KEY",
    "MAX_QUESTIONS",
    "QUESTIONS_PER_SKILL",
    "QUESTION_BANK",
    "build_question_queue",
    "lookup",
    "parse_tech_stack",
]

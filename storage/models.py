"""Pydantic models for persisted interview sessions."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

SessionStatus = Literal["in_progress", "completed"]


class QAPair(BaseModel):
    question: str
    answer: str


class SessionCreate(BaseModel):
    """Payload accepted when a candidate finishes profile capture."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: Optional[str] = None
    experience: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    responses: List[QAPair] = Field(default_factory=list)
    status: SessionStatus = "in_progress"


_NOT_NULL_FIELDS = ("name", "email", "tech_stack", "responses", "status")


class SessionPatch(BaseModel):
    """Partial overwrite; only fields present in the payload are written."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    experience: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    tech_stack: Optional[List[str]] = Field(default=None, alias="techStack")
    responses: Optional[List[QAPair]] = None
    status: Optional[SessionStatus] = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> "SessionPatch":
        for name in _NOT_NULL_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class SessionRecord(BaseModel):
    """Stored interview session as returned to callers."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    experience: Optional[str] = None
    position: Optional[str] = None
    location: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    responses: List[QAPair] = Field(default_factory=list)
    status: SessionStatus = "in_progress"
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class StatusRegressionError(ValueError):
    """Raised when a patch tries to reopen a completed session."""

    def __init__(self, session_id: int) -> None:
        super().__init__(f"Session {session_id} is completed and cannot return to in_progress")
        self.session_id = session_id


__all__ = [
    "QAPair",
    "SessionCreate",
    "SessionPatch",
    "SessionRecord",
    "SessionStatus",
    "StatusRegressionError",
]

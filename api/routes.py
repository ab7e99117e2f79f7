"""FastAPI routes exposing the interview session store."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, HTTPException
from pydantic import ValidationError

from storage.models import SessionCreate, SessionPatch, SessionRecord, StatusRegressionError
from storage.sessions import SessionStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _store() -> SessionStore:  # Schema is migrated once at app startup
    return SessionStore(ensure_schema=False)


def _parse_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid session ID") from exc


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "body"
        parts.append(f"{location}: {error.get('msg')}")
    return "Validation error: " + "; ".join(parts)


@router.post("", response_model=SessionRecord)
def create_session(payload: Dict[str, Any] = Body(...)) -> SessionRecord:
    try:
        data = SessionCreate.model_validate(payload)
    except ValidationError as exc:
        logger.info("Rejected session create: %s", exc.error_count())
        raise HTTPException(status_code=400, detail=_validation_message(exc)) from exc
    try:
        return _store().create(data)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unable to create session")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get("", response_model=List[SessionRecord])
def list_sessions() -> List[SessionRecord]:
    try:
        return _store().list()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unable to list sessions")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get("/{session_id}", response_model=SessionRecord)
def get_session(session_id: str) -> SessionRecord:
    sid = _parse_id(session_id)
    try:
        record = _store().get(sid)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unable to load session %s", sid)
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record


@router.patch("/{session_id}", response_model=SessionRecord)
def patch_session(session_id: str, payload: Dict[str, Any] = Body(...)) -> SessionRecord:
    sid = _parse_id(session_id)
    try:
        data = SessionPatch.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=_validation_message(exc)) from exc
    try:
        record = _store().patch(sid, data)
    except StatusRegressionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unable to update session %s", sid)
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record

"""SQLite-backed interview session store."""
from __future__ import annotations

import datetime as dt
import json
import logging
import sqlite3
import threading
from typing import Dict, List, Optional

from config.settings import settings
from observability.logger import log_event

from .migrate import migrate
from .models import SessionCreate, SessionPatch, SessionRecord, StatusRegressionError
from .sqlite import get_conn


logger = logging.getLogger(__name__)

_WRITE_LOCKS: Dict[str, threading.Lock] = {}
_WRITE_LOCKS_GUARD = threading.Lock()

_COLUMNS = (
    "id, name, email, phone, experience, position, location, "
    "tech_stack, responses, status, created_at, updated_at"
)
_JSON_FIELDS = {"tech_stack", "responses"}


def _write_lock(path: str) -> threading.Lock:
    with _WRITE_LOCKS_GUARD:
        lock = _WRITE_LOCKS.get(path)
        if lock is None:
            lock = threading.Lock()
            _WRITE_LOCKS[path] = lock
    return lock


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def _row_to_record(row: sqlite3.Row) -> SessionRecord:
    return SessionRecord(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone=row["phone"],
        experience=row["experience"],
        position=row["position"],
        location=row["location"],
        tech_stack=json.loads(row["tech_stack"]),
        responses=json.loads(row["responses"]),
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SessionStore:  # Durable interview session records keyed by integer id
    def __init__(self, db_path: Optional[str] = None, *, ensure_schema: bool = True) -> None:
        self._db_path = db_path
        if ensure_schema:
            migrate(self.path)

    @property
    def path(self) -> str:
        return self._db_path or settings.DB_PATH

    def create(self, payload: SessionCreate) -> SessionRecord:
        """Insert a new session and return it with its assigned id."""

        now = _now()
        with _write_lock(self.path), get_conn(self.path) as conn:
            cur = conn.execute(
                """INSERT INTO interview_sessions
                   (name, email, phone, experience, position, location,
                    tech_stack, responses, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    payload.name,
                    payload.email,
                    payload.phone,
                    payload.experience,
                    payload.position,
                    payload.location,
                    json.dumps(payload.tech_stack),
                    json.dumps([pair.model_dump() for pair in payload.responses]),
                    payload.status,
                    now,
                    now,
                ),
            )
            session_id = int(cur.lastrowid)
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM interview_sessions WHERE id = ?", (session_id,)
            ).fetchone()
        log_event("store.create", str(session_id), status=payload.status)
        return _row_to_record(row)

    def get(self, session_id: int) -> Optional[SessionRecord]:
        with get_conn(self.path) as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM interview_sessions WHERE id = ?", (session_id,)
            ).fetchone()
        if row is None:
            return None
        return _row_to_record(row)

    def patch(self, session_id: int, payload: SessionPatch) -> Optional[SessionRecord]:
        """Overwrite the fields present in ``payload`` in one transaction.

        Returns ``None`` when ``session_id`` does not exist.
        """

        changes = payload.changes()
        with _write_lock(self.path), get_conn(self.path) as conn:
            conn.execute("BEGIN IMMEDIATE")
            current = conn.execute(
                "SELECT status FROM interview_sessions WHERE id = ?", (session_id,)
            ).fetchone()
            if current is None:
                return None
            if current["status"] == "completed" and changes.get("status") == "in_progress":
                raise StatusRegressionError(session_id)

            assignments: List[str] = []
            values: List[object] = []
            for column, value in changes.items():
                if column in _JSON_FIELDS:
                    value = json.dumps(value)
                assignments.append(f"{column} = ?")
                values.append(value)
            assignments.append("updated_at = ?")
            values.append(_now())
            values.append(session_id)
            conn.execute(
                f"UPDATE interview_sessions SET {', '.join(assignments)} WHERE id = ?",
                values,
            )
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM interview_sessions WHERE id = ?", (session_id,)
            ).fetchone()
        log_event("store.patch", str(session_id), fields=sorted(changes))
        return _row_to_record(row)

    def list(self) -> List[SessionRecord]:  # Newest created first
        with get_conn(self.path) as conn:
            rows = conn.execute(
                f"""SELECT {_COLUMNS} FROM interview_sessions
                    ORDER BY created_at DESC, id DESC"""
            ).fetchall()
        return [_row_to_record(row) for row in rows]


__all__ = ["SessionStore"]

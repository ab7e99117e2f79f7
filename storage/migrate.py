"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable, Optional

from config.settings import settings

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  email TEXT NOT NULL,
  phone TEXT,
  experience TEXT,
  position TEXT,
  location TEXT,
  tech_stack TEXT NOT NULL DEFAULT '[]',
  responses TEXT NOT NULL DEFAULT '[]',
  status TEXT NOT NULL DEFAULT 'in_progress',
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_interview_sessions_created
  ON interview_sessions (created_at DESC, id DESC);
""",
]


def migrate(db_path: Optional[str] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    path = db_path or settings.DB_PATH
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()

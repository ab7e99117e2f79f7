"""Lightweight CLI helpers for inspecting stored interview sessions."""
from __future__ import annotations

import argparse
from typing import Optional, Sequence

from storage.sessions import SessionStore


def list_sessions(limit: int = 20, *, store: Optional[SessionStore] = None) -> None:
    store = store or SessionStore()
    records = store.list()
    if limit > 0:
        records = records[:limit]
    for record in records:
        stack = ", ".join(record.tech_stack) or "-"
        print(
            f"[{record.created_at.isoformat(timespec='seconds')}] #{record.id} {record.name} <{record.email}> "
            f"status={record.status} answers={len(record.responses)} stack={stack}"
        )


def show_session(session_id: int, *, store: Optional[SessionStore] = None) -> bool:
    store = store or SessionStore()
    record = store.get(session_id)
    if record is None:
        print(f"Session {session_id} not found")
        return False
    print(f"#{record.id} {record.name} <{record.email}> status={record.status}")
    for label, value in (
        ("phone", record.phone),
        ("experience", record.experience),
        ("position", record.position),
        ("location", record.location),
    ):
        print(f"  {label}: {value or '-'}")
    print(f"  tech stack: {', '.join(record.tech_stack) or '-'}")
    print(f"  created: {record.created_at.isoformat()}  updated: {record.updated_at.isoformat()}")
    for index, pair in enumerate(record.responses, start=1):
        print(f"  Q{index}: {pair.question}")
        print(f"  A{index}: {pair.answer}")
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect stored interview sessions")
    parser.add_argument("--list", type=int, nargs="?", const=20, help="Show the newest sessions (0 for all)")
    parser.add_argument("--show", type=int, help="Show one session with its answers")
    args = parser.parse_args(argv)

    if args.list is not None:
        list_sessions(args.list)
    if args.show is not None:
        return 0 if show_session(args.show) else 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Structured event logging for intake conversations and session writes."""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/intake.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
HUMAN_DATEFMT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger("intake.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


def _ensure_handlers() -> None:
    if _logger.handlers:
        return

    console = logging.StreamHandler(stream=sys.stdout)
    console.setLevel(LOG_LEVEL)
    console.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=HUMAN_DATEFMT))
    console.addFilter(lambda record: getattr(record, "is_json", False) is not True)
    _logger.addHandler(console)

    if not ENABLE_FILE_LOGS:
        return

    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    # JSON lines go to the file only
    json_file = logging.handlers.RotatingFileHandler(
        LOG_FILE,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
    )
    json_file.setLevel(LOG_LEVEL)
    json_file.setFormatter(logging.Formatter("%(message)s"))
    json_file.addFilter(lambda record: getattr(record, "is_json", False) is True)
    _logger.addHandler(json_file)


def _format_human(evt: dict[str, Any]) -> str:
    base = f"ref={evt.get('ref')} kind={evt.get('kind')}"
    extras: list[str] = []
    for key in ("step", "next_step", "intent", "status", "fields", "outcome", "ms", "error"):
        if key in evt:
            extras.append(f"{key}={evt[key]}")
    return base + (" " + " ".join(extras) if extras else "")


def _emit(level: int, message: str, is_json: bool) -> None:
    record = _logger.makeRecord(
        name=_logger.name,
        level=level,
        fn="",
        lno=0,
        msg=message,
        args=(),
        exc_info=None,
    )
    record.is_json = is_json  # type: ignore[attr-defined]
    _logger.handle(record)


def log_event(kind: str, ref: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit a human line to the console and a JSON line to the file log.

    ``ref`` identifies the conversation or session the event belongs to.
    """

    _ensure_handlers()

    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "ref": ref,
    }
    payload.update(fields)

    _emit(level, _format_human(payload), is_json=False)
    if ENABLE_FILE_LOGS:
        _emit(level, json.dumps(payload, ensure_ascii=False, default=str), is_json=True)


__all__ = ["HUMAN_DATEFMT", "HUMAN_FORMAT", "log_event"]

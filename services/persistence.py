"""Best-effort persistence side channel for conversation intents.

The conversation never waits on these writes. Intents are executed in
submission order by a single worker thread; failures are logged and dropped.
"""
from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

import httpx

from config.settings import settings
from conversation.state import PersistIntent
from observability.logger import log_event
from storage.models import SessionCreate, SessionPatch
from storage.sessions import SessionStore


logger = logging.getLogger(__name__)


class SessionGatewayError(RuntimeError):  # Raised when a session write is rejected or fails
    pass


class SessionGateway(Protocol):
    def create(self, fields: Dict[str, Any]) -> int: ...

    def patch(self, session_id: int, fields: Dict[str, Any]) -> None: ...


class LocalSessionGateway:  # Writes straight to the SQLite store
    def __init__(self, store: Optional[SessionStore] = None) -> None:
        self._store = store or SessionStore()

    def create(self, fields: Dict[str, Any]) -> int:
        record = self._store.create(SessionCreate.model_validate(fields))
        return record.id

    def patch(self, session_id: int, fields: Dict[str, Any]) -> None:
        record = self._store.patch(session_id, SessionPatch.model_validate(fields))
        if record is None:
            raise SessionGatewayError(f"Session {session_id} not found")


class HttpSessionGateway:  # Writes through the session REST API
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = (base_url or settings.SESSION_API_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(
            timeout=timeout if timeout is not None else settings.SESSION_API_TIMEOUT_S
        )

    def _send(self, method: str, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.request(method, f"{self._base_url}{path}", json=payload)
        except httpx.HTTPError as exc:
            raise SessionGatewayError(f"Session API unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise SessionGatewayError(
                f"Session API returned {response.status_code}: {response.text}"
            )
        return response.json()

    def create(self, fields: Dict[str, Any]) -> int:
        payload = SessionCreate.model_validate(fields).model_dump(mode="json", by_alias=True)
        return int(self._send("POST", "/sessions", payload)["id"])

    def patch(self, session_id: int, fields: Dict[str, Any]) -> None:
        payload = SessionPatch.model_validate(fields).model_dump(
            mode="json", by_alias=True, exclude_unset=True
        )
        self._send("PATCH", f"/sessions/{session_id}", payload)

    def close(self) -> None:
        self._client.close()


_STOP = object()


class _Release:  # Forget a conversation's session id once earlier intents are done
    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id


class PersistWorker:
    """Drains persist intents on a daemon thread.

    Tracks the session id assigned to each conversation so patches can be
    routed once the create has landed. A conversation's entry lives until
    :meth:`release` is processed.
    """

    def __init__(self, gateway: SessionGateway) -> None:
        self._gateway = gateway
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._session_ids: Dict[str, int] = {}
        self._ids_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

    def start(self) -> "PersistWorker":
        with self._start_lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._run, name="persist-worker", daemon=True
                )
                self._thread.start()
        return self

    def submit(
        self,
        intents: Iterable[PersistIntent],
        on_created: Optional[Callable[[int], None]] = None,
    ) -> None:
        """Queue ``intents``; ``on_created`` receives the id of a successful create."""

        self.start()
        for intent in intents:
            self._queue.put((intent, on_created))

    def release(self, conversation_id: str) -> None:
        self.start()
        self._queue.put(_Release(conversation_id))

    def drain(self) -> None:  # Block until every submitted intent has been handled
        self._queue.join()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join()
        self._thread = None

    def session_id_for(self, conversation_id: str) -> Optional[int]:
        with self._ids_lock:
            return self._session_ids.get(conversation_id)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, _Release):
                    with self._ids_lock:
                        self._session_ids.pop(item.conversation_id, None)
                    continue
                intent, on_created = item
                session_id = self._execute(intent)
                if session_id is not None and on_created is not None:
                    on_created(session_id)
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "Persist intent %s failed for conversation %s",
                    intent.kind,
                    intent.conversation_id,
                )
                log_event(
                    "persist.failed",
                    intent.conversation_id,
                    level=logging.WARNING,
                    intent=intent.kind,
                    error=str(exc),
                )
            finally:
                self._queue.task_done()

    def _execute(self, intent: PersistIntent) -> Optional[int]:
        if intent.kind == "create":
            session_id = self._gateway.create(intent.fields)
            with self._ids_lock:
                self._session_ids[intent.conversation_id] = session_id
            log_event("persist.create", intent.conversation_id, outcome=session_id)
            return session_id

        session_id = self.session_id_for(intent.conversation_id)
        if session_id is None:
            logger.warning(
                "No session for conversation %s; skipping patch of %s",
                intent.conversation_id,
                sorted(intent.fields),
            )
            return None
        self._gateway.patch(session_id, intent.fields)
        log_event(
            "persist.patch",
            intent.conversation_id,
            fields=sorted(intent.fields),
            outcome=session_id,
        )
        return None


__all__ = [
    "HttpSessionGateway",
    "LocalSessionGateway",
    "PersistWorker",
    "SessionGateway",
    "SessionGatewayError",
]

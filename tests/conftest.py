import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from services.persistence import LocalSessionGateway, PersistWorker
from storage.migrate import migrate
from storage.sessions import SessionStore


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "COMPOSE_DELAY_SECONDS", 0.0, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def store(tmp_db):
    return SessionStore(tmp_db)


@pytest.fixture
def worker(store):
    persist = PersistWorker(LocalSessionGateway(store)).start()
    try:
        yield persist
    finally:
        persist.drain()
        persist.stop()

import pytest
from fastapi.testclient import TestClient

from event_journal import EventJournal
from main import create_app
from notes_service import NotesStore


@pytest.fixture
def journal(tmp_path):
    return EventJournal(tmp_path / "logs.jsonl", max_bytes=1024 * 1024)


@pytest.fixture
def store(tmp_path, journal):
    notes_store = NotesStore(tmp_path / "notes.json", journal=journal)
    notes_store.ensure_file()
    return notes_store


@pytest.fixture
def client(store, journal):
    app = create_app(store=store, journal=journal)
    with TestClient(app) as test_client:
        yield test_client

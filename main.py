from contextlib import asynccontextmanager
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import uvicorn

from config import settings
from event_journal import EventJournal
from notes_service import Note, NoteNotFound, NotesStore, NotesStoreError

logger = logging.getLogger(__name__)
logging.basicConfig(level=settings.LOG_LEVEL)


# Data models
class NoteCreate(BaseModel):
    title: str
    content: str


class NoteUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None


def get_store(request: Request) -> NotesStore:
    return request.app.state.notes_store


def get_journal(request: Request) -> EventJournal:
    return request.app.state.journal


router = APIRouter(prefix="/notes", tags=["Notes"])


@router.get("", response_model=List[Note])
async def get_notes(store: NotesStore = Depends(get_store),
                    journal: EventJournal = Depends(get_journal)):
    """Get all notes"""
    try:
        notes = store.load()
    except NotesStoreError as e:
        journal.error(f"Error fetching notes: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    journal.info("Fetched all notes successfully")
    return notes


@router.get("/list", response_model=List[str])
async def list_notes(store: NotesStore = Depends(get_store),
                     journal: EventJournal = Depends(get_journal)):
    """Get all notes formatted as 'id -- title'"""
    try:
        formatted = store.list_formatted()
    except NotesStoreError as e:
        journal.error(f"Error fetching formatted notes list: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    journal.info("Formatted notes list fetched successfully")
    return formatted


@router.get("/title/{title}", response_model=List[Note])
async def get_notes_by_title(title: str, store: NotesStore = Depends(get_store),
                             journal: EventJournal = Depends(get_journal)):
    """Get every note with a matching title (case-insensitive)"""
    try:
        notes = store.find_by_title(title)
    except NoteNotFound as e:
        journal.warn(str(e))
        raise HTTPException(status_code=404, detail=str(e))
    except NotesStoreError as e:
        journal.error(f'Error fetching notes with title "{title}": {e}')
        raise HTTPException(status_code=500, detail=str(e))

    journal.info(f'Fetched notes with title "{title}"')
    return notes


@router.get("/{note_id}", response_model=Note)
async def get_note(note_id: int, store: NotesStore = Depends(get_store),
                   journal: EventJournal = Depends(get_journal)):
    """Get a note by its id"""
    try:
        note = store.find_by_id(note_id)
    except NoteNotFound as e:
        journal.warn(f"Note with ID {note_id} not found")
        raise HTTPException(status_code=404, detail=str(e))
    except NotesStoreError as e:
        journal.error(f"Error fetching note with ID {note_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    journal.info(f"Fetched note with ID {note_id}")
    return note


@router.post("", response_model=Note, status_code=201)
async def create_note(note_request: NoteCreate, store: NotesStore = Depends(get_store),
                      journal: EventJournal = Depends(get_journal)):
    """Add a note at the end of the list"""
    try:
        note = store.insert(note_request.title, note_request.content)
    except NotesStoreError as e:
        journal.error(f"Error adding note: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    journal.info(f"New note added: {note.title}")
    return note


@router.put("/{note_id}", response_model=Note)
async def update_note(note_id: int, note_request: NoteUpdate,
                      store: NotesStore = Depends(get_store),
                      journal: EventJournal = Depends(get_journal)):
    """Update the supplied fields of a note"""
    try:
        note = store.update(note_id, title=note_request.title, content=note_request.content)
    except NoteNotFound as e:
        journal.warn(f"Note with ID {note_id} not found")
        raise HTTPException(status_code=404, detail=str(e))
    except NotesStoreError as e:
        journal.error(f"Error updating note: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    journal.info(f"Note with ID {note_id} updated")
    return note


@router.delete("", status_code=204)
async def delete_all_notes(store: NotesStore = Depends(get_store),
                           journal: EventJournal = Depends(get_journal)):
    """Delete every note"""
    try:
        store.delete_all()
    except NotesStoreError as e:
        journal.error(f"Error resetting notes: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    journal.info(f"All notes deleted, {store.path.name} reset to an empty array")
    return Response(status_code=204)


@router.delete("/{note_id}", status_code=204)
async def delete_note(note_id: int, store: NotesStore = Depends(get_store),
                      journal: EventJournal = Depends(get_journal)):
    """Delete a note and renumber the remaining ones"""
    try:
        store.delete(note_id)
    except NoteNotFound as e:
        journal.warn(f"Note with ID {note_id} not found for deletion")
        raise HTTPException(status_code=404, detail=str(e))
    except NotesStoreError as e:
        journal.error(f"Error deleting note: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    journal.info(f"Note with ID {note_id} deleted and IDs reassigned")
    return Response(status_code=204)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Make sure the notes file is usable before serving requests"""
    store: NotesStore = app.state.notes_store
    journal: EventJournal = app.state.journal

    try:
        store.ensure_file()
    except NotesStoreError as e:
        journal.error(f"Failed to initialize notes file: {e}")
        raise

    journal.info(f"Server is running on http://{settings.HOST}:{settings.PORT}")
    yield
    logger.info("Shutting down notes API")


def create_app(store: Optional[NotesStore] = None,
               journal: Optional[EventJournal] = None) -> FastAPI:
    """Build the API around a notes store and an event journal"""
    if journal is None:
        journal = EventJournal(settings.LOG_FILE, settings.LOG_MAX_BYTES)
    if store is None:
        store = NotesStore(settings.NOTES_FILE, journal=journal)

    app = FastAPI(title="Notes API", version="1.0.0", lifespan=lifespan)
    app.state.notes_store = store
    app.state.journal = journal

    # Credentials only go to an explicit origin list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials="*" not in settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Notes API", "version": "1.0.0"}

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)

"""Notes service for storing notes in a single JSON file.

The whole list of notes is the unit of persistence: every operation loads
the full document and every mutation writes the full document back. Note ids
are positional (``id == index + 1``) and are recomputed after each delete.

Mutations run their load-modify-save sequence under a per-file lock, so two
requests on the same file cannot overwrite each other's changes.
"""
import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from event_journal import EventJournal

logger = logging.getLogger(__name__)


class Note(BaseModel):
    id: int = Field(ge=1)
    title: str
    content: str


class NotesStoreError(Exception):
    """Base class for notes store failures"""


class ReadFailure(NotesStoreError):
    """Notes file could not be read"""


class WriteFailure(NotesStoreError):
    """Notes file could not be written"""


class MalformedDocument(NotesStoreError):
    """Notes file contents are not a list of notes"""


class NoteNotFound(NotesStoreError):
    """No note matched the lookup"""


# One lock per notes file, shared by every store on that path
_path_locks: Dict[str, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _path_locks_guard:
        if key not in _path_locks:
            _path_locks[key] = threading.Lock()
        return _path_locks[key]


def renumber(notes: List[Note]) -> List[Note]:
    """Return copies of notes with ids reassigned to 1..N in order"""
    return [note.model_copy(update={"id": index + 1}) for index, note in enumerate(notes)]


class NotesStore:
    """File-backed list of notes"""

    def __init__(self, path: Union[str, Path], journal: Optional[EventJournal] = None):
        self.path = Path(path)
        self.journal = journal
        self._lock = _lock_for(self.path)

    def ensure_file(self) -> None:
        """Create the notes file, or reset it if blank, so it holds a valid empty list"""
        with self.locked():
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._write_raw("[]")
                self._report(f"Created {self.path} with an empty array.")
                return

            try:
                content = self.path.read_text(encoding="utf-8")
            except OSError as e:
                raise ReadFailure(f"Error reading notes file: {e}") from e

            if not content.strip():
                self._write_raw("[]")
                self._report(f"Reset {self.path} to an empty array.")

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the file lock for a whole load-modify-save sequence"""
        with self._lock:
            yield

    def load(self) -> List[Note]:
        """Load all notes from file"""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise ReadFailure(f"Error reading notes file: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedDocument(f"Notes file is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise MalformedDocument("Notes file does not contain a list")

        try:
            return [Note.model_validate(item) for item in data]
        except ValidationError as e:
            raise MalformedDocument(f"Notes file contains an invalid note: {e}") from e

    def replace(self, notes: List[Note]) -> None:
        """Overwrite the notes file with the given notes"""
        payload = json.dumps([note.model_dump() for note in notes], indent=2, ensure_ascii=False)
        self._write_raw(payload)

    def _write_raw(self, payload: str) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise WriteFailure(f"Error writing to notes file: {e}") from e

    def _report(self, message: str) -> None:
        logger.info(message)
        if self.journal is not None:
            self.journal.info(message)

    def insert(self, title: str, content: str) -> Note:
        """Append a new note with the next id"""
        with self.locked():
            notes = self.load()
            note = Note(id=len(notes) + 1, title=title, content=content)
            notes.append(note)
            self.replace(notes)
        return note

    def find_by_id(self, note_id: int) -> Note:
        for note in self.load():
            if note.id == note_id:
                return note
        raise NoteNotFound("Note not found")

    def find_by_title(self, title: str) -> List[Note]:
        """Get every note whose title matches, ignoring case"""
        wanted = title.casefold()
        matches = [note for note in self.load() if note.title.casefold() == wanted]
        if not matches:
            raise NoteNotFound(f'No notes found with title "{title}"')
        return matches

    def update(self, note_id: int, title: Optional[str] = None,
               content: Optional[str] = None) -> Note:
        """Overwrite the supplied, non-empty fields of a note"""
        with self.locked():
            notes = self.load()
            for index, note in enumerate(notes):
                if note.id == note_id:
                    break
            else:
                raise NoteNotFound("Note not found")

            changes = {}
            if title:
                changes["title"] = title
            if content:
                changes["content"] = content
            updated = note.model_copy(update=changes)
            notes[index] = updated
            self.replace(notes)
        return updated

    def delete(self, note_id: int) -> None:
        """Remove a note and renumber the rest"""
        with self.locked():
            notes = self.load()
            kept = [note for note in notes if note.id != note_id]
            if len(kept) == len(notes):
                raise NoteNotFound("Note not found")
            self.replace(renumber(kept))

    def delete_all(self) -> None:
        with self.locked():
            self.replace([])

    def list_formatted(self) -> List[str]:
        return [f"{note.id} -- {note.title}" for note in self.load()]

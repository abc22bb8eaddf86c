"""Append-only event journal with size-based rotation.

Entries are stored as JSON Lines: one ``{"level", "message", "timestamp"}``
object per line. When appending an entry would push the journal past
``max_bytes``, the current file is moved to a single backup (``<path>.1``)
and a fresh journal is started with the new entry.

Journal I/O is best-effort: ``log`` never raises on a write or rotation
failure, so an unwritable journal cannot break the request it is observing.
"""
import json
import logging
import os
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Union

logger = logging.getLogger(__name__)

# Entries are mirrored here so they also reach the console
_mirror = logging.getLogger("event_journal.events")

DEFAULT_MAX_BYTES = 1024 * 1024
DEFAULT_BACKUP_SUFFIX = ".1"


class LogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


_MIRROR_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class EventJournal:
    """Size-bounded journal of request-handling events"""

    def __init__(self, path: Union[str, Path], max_bytes: int = DEFAULT_MAX_BYTES,
                 backup_suffix: str = DEFAULT_BACKUP_SUFFIX):
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        self.path = Path(path)
        self.backup_path = self.path.with_name(self.path.name + backup_suffix)
        self.max_bytes = max_bytes
        self._lock = threading.Lock()

    def log(self, level: Union[LogLevel, str], message: str) -> None:
        """Append one entry, rotating first if it would overflow the journal"""
        level = LogLevel(level)
        entry = {
            "level": level.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        }
        _mirror.log(_MIRROR_LEVELS[level], message)

        line = (json.dumps(entry, ensure_ascii=False) + "\n").encode("utf-8")
        try:
            with self._lock:
                self._append(line)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to write journal entry to {self.path}: {e}")

    def info(self, message: str) -> None:
        self.log(LogLevel.INFO, message)

    def warn(self, message: str) -> None:
        self.log(LogLevel.WARN, message)

    def error(self, message: str) -> None:
        self.log(LogLevel.ERROR, message)

    def _append(self, line: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            current_size = self.path.stat().st_size
        except FileNotFoundError:
            current_size = 0

        # An empty journal always takes the entry, even an oversized one
        if current_size > 0 and current_size + len(line) > self.max_bytes:
            self._rotate()

        with open(self.path, "ab") as f:
            f.write(line)

    def _rotate(self) -> None:
        # On failure nothing has moved, so the entry still goes to the full journal
        try:
            os.replace(self.path, self.backup_path)
        except OSError as e:
            logger.warning(f"Failed to rotate journal {self.path} to {self.backup_path}: {e}")
            return
        logger.debug(f"Rotated journal {self.path} to {self.backup_path}")

    def read_entries(self, backup: bool = False) -> List[Dict]:
        """Read all entries from the active journal (or its backup)"""
        path = self.backup_path if backup else self.path
        if not path.exists():
            return []

        entries = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.debug(f"Skipping undecodable journal line in {path}")
        return entries

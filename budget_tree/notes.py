"""
Per-node notes: timestamped free-text entries keyed by node path.

Keys are ``thb_notes::`` followed by the root-to-node path string, e.g.
``thb_notes::/National Budget/Ministry of Finance``.  Each key holds an
ordered list of ``{"text": ..., "timestamp": <epoch ms>}`` entries.

Reads never fail: a missing key, a corrupt entry list, or an unreadable
backend all read as "no notes" (the last one is logged).  Writes that cannot
be persisted raise NotesUnavailableError so the caller can report it; the
navigation state is never involved.

Backends:
  - MemoryNotesStore:   dict in process memory (tests, CLI without a file)
  - JsonFileNotesStore: one JSON document on disk, rewritten atomically
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from budget_tree.errors import NotesUnavailableError
from budget_tree.models import NoteEntry, path_to_str, split_path
from utils.patterns import FILENAME_UNSAFE

logger = logging.getLogger(__name__)

NOTES_KEY_PREFIX = "thb_notes::"


def notes_key(path_str: str) -> str:
    """Namespace a node path for storage.

    Example:
        notes_key("/Thailand/Budget") -> "thb_notes::/Thailand/Budget"
    """
    return NOTES_KEY_PREFIX + path_str


def normalize_note_path(path: Sequence[str] | str) -> str:
    """Return the canonical ``/A/B`` string for a path given as str or names."""
    names = split_path(path) if isinstance(path, str) else tuple(path)
    return path_to_str(names)


def export_filename(path: Sequence[str] | str) -> str:
    """Download filename for a node's exported notes.

    Example:
        export_filename("/Budget/Ministry of Finance")
        -> "notes_Budget_Ministry of Finance.json"
    """
    path_str = normalize_note_path(path)
    return "notes" + FILENAME_UNSAFE.sub("_", path_str) + ".json"


def _parse_entries(raw: Any) -> list[NoteEntry]:
    """Turn a stored value into NoteEntry objects; anything unusable -> []."""
    if not isinstance(raw, list):
        return []
    entries = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("text"), str):
            return []
        ts = item.get("timestamp", item.get("ts"))
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            return []
        entries.append(NoteEntry(text=item["text"], timestamp=int(ts)))
    return entries


def _extend(raw: Any, entry: dict[str, Any]) -> list[dict[str, Any]]:
    """Stored entries for one key plus *entry*; an unusable list starts over."""
    entries = [e.to_dict() for e in _parse_entries(raw)]
    entries.append(entry)
    return entries


class NotesStore:
    """Base class: note semantics on top of a simple key -> list backend.

    Subclasses implement ``_load``, ``_append`` and ``_remove``.  ``_append``
    must read, extend and write the entry list as one step, so concurrent
    appends to the same path all survive.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    # ── backend hooks ─────────────────────────────────────────────────────

    def _load(self, key: str) -> Any:
        raise NotImplementedError

    def _append(self, key: str, entry: dict[str, Any]) -> None:
        raise NotImplementedError

    def _remove(self, key: str) -> None:
        raise NotImplementedError

    # ── public API ────────────────────────────────────────────────────────

    def list(self, path: Sequence[str] | str) -> list[NoteEntry]:
        """Return the notes stored for *path*, oldest first."""
        key = notes_key(normalize_note_path(path))
        try:
            raw = self._load(key)
        except (OSError, ValueError) as exc:
            logger.warning("Notes unavailable for %s: %s", key, exc)
            return []
        return _parse_entries(raw)

    def append(self, path: Sequence[str] | str, text: str) -> NoteEntry:
        """Add a note for *path* and return it.

        Raises:
            ValueError: If *text* is empty after stripping.
            NotesUnavailableError: If the backend cannot persist the note.
        """
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValueError("Note text must not be empty")
        key = notes_key(normalize_note_path(path))
        entry = NoteEntry(text=cleaned, timestamp=int(self._clock() * 1000))
        try:
            self._append(key, entry.to_dict())
        except OSError as exc:
            raise NotesUnavailableError(f"Could not save note for {key}: {exc}") from exc
        return entry

    def clear(self, path: Sequence[str] | str) -> None:
        """Delete every note stored for *path* (no-op if there are none)."""
        key = notes_key(normalize_note_path(path))
        try:
            self._remove(key)
        except OSError as exc:
            raise NotesUnavailableError(f"Could not clear notes for {key}: {exc}") from exc

    def export(self, path: Sequence[str] | str) -> dict[str, Any]:
        """Return the export document ``{"path": ..., "notes": [...]}``."""
        path_str = normalize_note_path(path)
        return {
            "path": path_str,
            "notes": [e.to_dict() for e in self.list(path_str)],
        }


class MemoryNotesStore(NotesStore):
    """Notes kept in a dict for the lifetime of the process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        super().__init__(clock)
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()

    def _load(self, key: str) -> Any:
        return self._data.get(key, [])

    def _append(self, key: str, entry: dict[str, Any]) -> None:
        with self._lock:
            self._data[key] = _extend(self._data.get(key), entry)

    def _remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileNotesStore(NotesStore):
    """Notes persisted to a single JSON document mapping keys to entry lists.

    The document is rewritten through a temp file and ``os.replace`` so a
    crash mid-write never leaves a half-written file.  A document that is
    not valid JSON reads as empty but is never overwritten.
    """

    def __init__(self, path: Path | str,
                 clock: Callable[[], float] = time.time) -> None:
        super().__init__(clock)
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write_document(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".notes-", suffix=".json",
                                   dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def _read_for_update(self) -> dict[str, Any]:
        """Read the document before a write; call with the lock held."""
        try:
            return self._read_document()
        except ValueError as exc:
            raise NotesUnavailableError(
                f"Refusing to overwrite unreadable notes file {self.path}: {exc}"
            ) from exc

    def _load(self, key: str) -> Any:
        with self._lock:
            return self._read_document().get(key, [])

    def _append(self, key: str, entry: dict[str, Any]) -> None:
        with self._lock:
            data = self._read_for_update()
            data[key] = _extend(data.get(key), entry)
            self._write_document(data)

    def _remove(self, key: str) -> None:
        with self._lock:
            data = self._read_for_update()
            if key not in data:
                return
            del data[key]
            self._write_document(data)

    def keys(self) -> list[str]:
        """Return every node path that has notes (without the key prefix)."""
        try:
            with self._lock:
                data = self._read_document()
        except (OSError, ValueError) as exc:
            logger.warning("Notes file %s unreadable: %s", self.path, exc)
            return []
        return sorted(k[len(NOTES_KEY_PREFIX):] for k in data
                      if k.startswith(NOTES_KEY_PREFIX))

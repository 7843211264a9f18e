"""
Tests for budget_tree/notes.py

Key format, export document and filename, append/list/clear semantics,
degradation on unreadable storage, and the JSON file backend.
"""
import json
import sys
import threading
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from budget_tree.errors import NotesUnavailableError
from budget_tree.notes import (
    JsonFileNotesStore,
    MemoryNotesStore,
    _parse_entries,
    export_filename,
    normalize_note_path,
    notes_key,
)

PATH = ("National Budget", "Ministry of Finance")
PATH_STR = "/National Budget/Ministry of Finance"


# ── keys and filenames ────────────────────────────────────────────────────────

def test_notes_key():
    assert notes_key(PATH_STR) == "thb_notes::/National Budget/Ministry of Finance"


@pytest.mark.parametrize("path", [PATH, list(PATH), PATH_STR, PATH_STR + "/",
                                  "National Budget/Ministry of Finance"])
def test_normalize_note_path(path):
    assert normalize_note_path(path) == PATH_STR


def test_export_filename():
    assert export_filename(PATH) == "notes_National Budget_Ministry of Finance.json"


def test_export_filename_strips_unsafe_chars():
    assert export_filename(["Budget", 'A:B?"C']) == "notes_Budget_A_B__C.json"


# ── entry parsing ─────────────────────────────────────────────────────────────

class TestParseEntries:
    def test_valid(self):
        entries = _parse_entries([{"text": "a", "timestamp": 1}, {"text": "b", "ts": 2}])
        assert [(e.text, e.timestamp) for e in entries] == [("a", 1), ("b", 2)]

    @pytest.mark.parametrize("raw", [None, "text", {"text": "a"},
                                     [{"text": 1, "timestamp": 1}],
                                     [{"text": "a"}],
                                     [{"text": "a", "timestamp": True}],
                                     ["a"]])
    def test_corrupt_reads_as_empty(self, raw):
        assert _parse_entries(raw) == []


# ── store semantics (memory backend) ──────────────────────────────────────────

class TestMemoryNotesStore:
    def test_unset_key_is_empty(self, memory_notes):
        assert memory_notes.list(PATH) == []

    def test_append_and_list_in_order(self, memory_notes):
        first = memory_notes.append(PATH, "first")
        memory_notes.append(PATH_STR, "second")
        entries = memory_notes.list(PATH)
        assert [e.text for e in entries] == ["first", "second"]
        assert entries[0] == first
        assert entries[0].timestamp == 1_700_000_000_000
        assert entries[1].timestamp > entries[0].timestamp

    def test_text_is_stripped(self, memory_notes):
        assert memory_notes.append(PATH, "  padded  ").text == "padded"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_text_rejected(self, memory_notes, text):
        with pytest.raises(ValueError):
            memory_notes.append(PATH, text)
        assert memory_notes.list(PATH) == []

    def test_paths_are_independent(self, memory_notes):
        memory_notes.append(PATH, "x")
        assert memory_notes.list(PATH[:1]) == []

    def test_clear(self, memory_notes):
        memory_notes.append(PATH, "x")
        memory_notes.clear(PATH)
        assert memory_notes.list(PATH) == []

    def test_clear_unset_is_noop(self, memory_notes):
        memory_notes.clear(PATH)

    def test_export(self, memory_notes):
        memory_notes.append(PATH, "note")
        doc = memory_notes.export(PATH)
        assert doc == {
            "path": PATH_STR,
            "notes": [{"text": "note", "timestamp": 1_700_000_000_000}],
        }

    def test_export_empty(self, memory_notes):
        assert memory_notes.export(PATH) == {"path": PATH_STR, "notes": []}

    def test_corrupt_value_reads_empty(self, memory_notes):
        memory_notes._data[notes_key(PATH_STR)] = "not a list"
        assert memory_notes.list(PATH) == []

    def test_html_is_stored_verbatim(self, memory_notes):
        memory_notes.append(PATH, "<b>bold</b>")
        assert memory_notes.list(PATH)[0].text == "<b>bold</b>"


# ── JSON file backend ─────────────────────────────────────────────────────────

class TestJsonFileNotesStore:
    def test_missing_file_is_empty(self, file_notes):
        assert file_notes.list(PATH) == []
        assert file_notes.keys() == []

    def test_persists_across_instances(self, notes_file):
        JsonFileNotesStore(notes_file).append(PATH, "kept")
        assert [e.text for e in JsonFileNotesStore(notes_file).list(PATH)] == ["kept"]

    def test_document_layout(self, file_notes, notes_file):
        file_notes.append(PATH, "ภาษีศุลกากร")
        data = json.loads(notes_file.read_text(encoding="utf-8"))
        assert list(data) == [notes_key(PATH_STR)]
        assert data[notes_key(PATH_STR)][0]["text"] == "ภาษีศุลกากร"

    def test_keys(self, file_notes):
        file_notes.append(PATH, "a")
        file_notes.append(PATH[:1], "b")
        assert file_notes.keys() == ["/National Budget", PATH_STR]

    def test_clear_removes_key(self, file_notes, notes_file):
        file_notes.append(PATH, "a")
        file_notes.clear(PATH)
        assert json.loads(notes_file.read_text(encoding="utf-8")) == {}

    def test_creates_parent_directory(self, tmp_path):
        store = JsonFileNotesStore(tmp_path / "nested" / "dir" / "notes.json")
        store.append(PATH, "x")
        assert store.path.exists()

    def test_no_temp_files_left(self, file_notes, notes_file):
        file_notes.append(PATH, "x")
        assert [p.name for p in notes_file.parent.iterdir()] == ["notes.json"]

    def test_corrupt_file_reads_empty_and_is_not_overwritten(self, notes_file):
        notes_file.write_text("{corrupt", encoding="utf-8")
        store = JsonFileNotesStore(notes_file)
        assert store.list(PATH) == []
        assert store.keys() == []
        with pytest.raises(NotesUnavailableError):
            store.append(PATH, "x")
        assert notes_file.read_text(encoding="utf-8") == "{corrupt"

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory", encoding="utf-8")
        store = JsonFileNotesStore(blocker / "notes.json")
        with pytest.raises(NotesUnavailableError):
            store.append(PATH, "x")

    def test_unreadable_location_degrades(self, tmp_path):
        store = JsonFileNotesStore(tmp_path)
        assert store.list(PATH) == []


# ── concurrent appends ────────────────────────────────────────────────────────

def _append_concurrently(store, threads=8, per_thread=10):
    barrier = threading.Barrier(threads)

    def worker(n):
        barrier.wait()
        for i in range(per_thread):
            store.append(PATH, f"note {n}-{i}")

    workers = [threading.Thread(target=worker, args=(n,)) for n in range(threads)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    return threads * per_thread


def test_concurrent_appends_all_kept_in_memory(memory_notes):
    expected = _append_concurrently(memory_notes)
    assert len(memory_notes.list(PATH)) == expected


def test_concurrent_appends_all_kept_on_disk(file_notes, notes_file):
    expected = _append_concurrently(file_notes)
    assert len(file_notes.list(PATH)) == expected
    doc = json.loads(notes_file.read_text(encoding="utf-8"))
    texts = {e["text"] for e in doc["thb_notes::" + PATH_STR]}
    assert len(texts) == expected

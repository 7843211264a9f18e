"""
Notes endpoints: timestamped free-text notes per node path.

Notes are stored in a local JSON file (BUDGET_NOTES_PATH) until a shared
backend is configured.  Reads degrade to an empty list when the store is
unreadable; writes that cannot be saved return 503.
"""

import json
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from api.dependencies import get_notes
from api.models import NoteIn, NoteOut, NotesOut
from budget_tree.notes import NotesStore, export_filename, normalize_note_path

router = APIRouter(prefix="/notes", tags=["notes"])


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback plus the UTF-8 (RFC 5987) name."""
    fallback = filename.encode("ascii", "ignore").decode("ascii") or "notes.json"
    return f'attachment; filename="{fallback}"; filename*=UTF-8\'\'{quote(filename)}'


@router.get("", response_model=NotesOut, summary="List notes for a node")
def list_notes(
    path: str = Query(..., description="Node path such as /Root/Ministry"),
    notes: NotesStore = Depends(get_notes),
) -> NotesOut:
    path_str = normalize_note_path(path)
    return NotesOut(path=path_str, notes=[e.to_dict() for e in notes.list(path_str)])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteOut,
    responses={
        400: {"description": "Blank note text"},
        503: {"description": "Notes storage unavailable"},
    },
    summary="Add a note",
)
def add_note(body: NoteIn, notes: NotesStore = Depends(get_notes)) -> NoteOut:
    entry = notes.append(body.path, body.text)
    return NoteOut(**entry.to_dict())


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={503: {"description": "Notes storage unavailable"}},
    summary="Clear all notes for a node",
)
def clear_notes(
    path: str = Query(..., description="Node path such as /Root/Ministry"),
    notes: NotesStore = Depends(get_notes),
) -> Response:
    notes.clear(path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/export", summary="Download notes for a node as JSON")
def export_notes(
    path: str = Query(..., description="Node path such as /Root/Ministry"),
    notes: NotesStore = Depends(get_notes),
) -> Response:
    """Return ``{"path", "notes"}`` as an attachment named notes_<path>.json."""
    document = notes.export(path)
    return Response(
        content=json.dumps(document, indent=2, ensure_ascii=False),
        media_type="application/json",
        headers={"Content-Disposition": _content_disposition(export_filename(path))},
    )

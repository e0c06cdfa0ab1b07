from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from idea_inbox.api.deps import get_extractor, get_store
from idea_inbox.capture.service import capture_note
from idea_inbox.extraction.base import Extractor
from idea_inbox.inbox.store import InboxStore
from idea_inbox.schemas.notes import CaptureRequest, Note, NoteCreate

router = APIRouter()


@router.get("")
def list_notes(store: InboxStore = Depends(get_store)) -> list[Note]:
    return store.list_all()


@router.post("", status_code=201)
def create_note(payload: NoteCreate, store: InboxStore = Depends(get_store)) -> Note:
    # Pass-through write: the client already ran extraction (or chose not to).
    return store.create(payload.content, title=payload.title, tags=payload.tags or [])


@router.post("/capture", status_code=201)
def capture(
    payload: CaptureRequest,
    store: InboxStore = Depends(get_store),
    extractor: Extractor = Depends(get_extractor),
) -> Note:
    return capture_note(store, extractor, payload.content).note


@router.delete("/{note_id}", status_code=204, response_class=Response)
def delete_note(note_id: int, store: InboxStore = Depends(get_store)) -> Response:
    # Idempotent: deleting an unknown id is still a success.
    store.delete_one(note_id)
    return Response(status_code=204)


@router.delete("", status_code=204, response_class=Response)
def clear_inbox(store: InboxStore = Depends(get_store)) -> Response:
    store.delete_all()
    return Response(status_code=204)

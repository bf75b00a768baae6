# app/notes/api.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.shared.db import get_db
from app.shared.auth import get_current_user
from app.shared.clock import Clock
from app.shared.deps import get_clock
from app.shared.http import ok
from app.notes.schemas import NoteCreate, NoteUpdate, NoteOut
from app.notes.service import create_note, list_notes, get_note, update_note, delete_note

router = APIRouter(prefix="/notes", tags=["Notes"])

def _out(note) -> dict:
    return NoteOut.model_validate(note).model_dump(mode="json")

@router.post("", status_code=201)
def api_create_note(payload: NoteCreate, user = Depends(get_current_user),
                    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    note = create_note(db, user["sub"], payload, clock)
    return ok(_out(note), message="Note created")

@router.get("")
def api_list_notes(user = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok({"items": [_out(n) for n in list_notes(db, user["sub"])]})

@router.get("/{note_id}")
def api_get_note(note_id: str, user = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok(_out(get_note(db, user["sub"], note_id)))

@router.patch("/{note_id}")
def api_update_note(note_id: str, payload: NoteUpdate, user = Depends(get_current_user),
                    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    note = update_note(db, user["sub"], note_id, payload, clock)
    return ok(_out(note), message="Note updated")

@router.delete("/{note_id}")
def api_delete_note(note_id: str, user = Depends(get_current_user), db: Session = Depends(get_db)):
    delete_note(db, user["sub"], note_id)
    return ok({"deleted": True}, message="Note deleted")

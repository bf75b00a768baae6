from sqlalchemy.orm import Session
from sqlalchemy import select, desc
from app.notes.models import Note
from app.notes.schemas import NoteCreate, NoteUpdate
from app.shared.clock import Clock
from app.shared.errors import NotFoundError

def get_note(db: Session, user_id: str, note_id: str) -> Note:
    note = db.scalars(select(Note).where(Note.id == note_id, Note.user_id == user_id)).first()
    if not note:
        raise NotFoundError("Note not found")
    return note

def create_note(db: Session, user_id: str, payload: NoteCreate, clock: Clock) -> Note:
    now = clock.now()
    note = Note(user_id=user_id, title=payload.title.strip(), content=payload.content, created_at=now, updated_at=now)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note

def list_notes(db: Session, user_id: str) -> list[Note]:
    stmt = select(Note).where(Note.user_id == user_id).order_by(desc(Note.created_at))
    return list(db.scalars(stmt).all())

def update_note(db: Session, user_id: str, note_id: str, payload: NoteUpdate, clock: Clock) -> Note:
    note = get_note(db, user_id, note_id)
    changed = False
    if payload.title is not None and payload.title.strip() and payload.title.strip() != note.title:
        note.title = payload.title.strip()
        changed = True
    if payload.content is not None and payload.content != note.content:
        note.content = payload.content
        changed = True
    if changed:
        # any content mutation moves updated_at and so invalidates the cached summary
        note.updated_at = clock.now()
        db.commit()
        db.refresh(note)
    return note

def delete_note(db: Session, user_id: str, note_id: str) -> None:
    note = get_note(db, user_id, note_id)
    db.delete(note)
    db.commit()

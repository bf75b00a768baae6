# app/summaries/api.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.shared.db import get_db
from app.shared.auth import get_current_user
from app.shared.clock import Clock
from app.shared.deps import get_clock, get_summarizer
from app.shared.http import ok
from app.summaries.cache import get_or_create_note_summary, get_or_create_task_summary
from app.summaries.summarizer import Summarizer

router = APIRouter(prefix="/ai", tags=["AI"])

class NoteSummarizeIn(BaseModel):
    title: str | None = None
    content: str | None = None

@router.post("/notes/{note_id}/summary")
def api_note_summary(note_id: str, inb: NoteSummarizeIn | None = None, user = Depends(get_current_user),
                     db: Session = Depends(get_db), clock: Clock = Depends(get_clock),
                     summarizer: Summarizer = Depends(get_summarizer)):
    inb = inb or NoteSummarizeIn()
    out = get_or_create_note_summary(db, user["sub"], note_id, summarizer, clock,
                                     title=inb.title, content=inb.content)
    message = "Summary loaded from cache" if out.cached else "Note summarized successfully"
    return ok({"summary": out.summary, "cached": out.cached}, message=message)

@router.post("/tasks/{task_id}/summary")
def api_task_summary(task_id: str, user = Depends(get_current_user),
                     db: Session = Depends(get_db), clock: Clock = Depends(get_clock),
                     summarizer: Summarizer = Depends(get_summarizer)):
    out = get_or_create_task_summary(db, user["sub"], task_id, summarizer, clock)
    message = "Summary (cached)" if out.cached else "Task summarized successfully"
    return ok({"summary": out.summary, "cached": out.cached}, message=message)

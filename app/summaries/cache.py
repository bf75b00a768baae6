"""
Cached AI summaries for notes and tasks.

Notes and tasks use different staleness rules:

* Note: the summary is served only while ``summary_version == updated_at``.
  Writing a summary pins both columns to the same captured instant, so the
  write itself never looks like a newer edit. Any later change to
  ``updated_at``, forwards or backwards, makes the next request regenerate.
* Task: the summary is served while ``last_summarized_at`` is not earlier than
  the task's ``updated_at`` or the ``updated_at`` of any subtask that has
  content. Subtasks change on their own, so equal timestamps count as fresh.

The summarizer runs before anything is written. If it fails, the entity is
left exactly as it was and the next request tries again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.notes.models import Note
from app.notes.service import get_note
from app.shared.clock import EPOCH, Clock, as_utc
from app.shared.config import settings
from app.shared.errors import ValidationError
from app.summaries.summarizer import Summarizer, call_summarizer
from app.tasks.models import Subtask, Task
from app.tasks.service import get_task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryResult:
    summary: str
    cached: bool


def note_summary_is_fresh(note: Note) -> bool:
    if not note.summary_content or note.summary_version is None:
        return False
    return as_utc(note.summary_version) == as_utc(note.updated_at)


def qualifying_subtasks(task: Task) -> list[Subtask]:
    return [st for st in task.subtasks if st.content and st.content.strip()]


def task_summary_is_fresh(task: Task, subtasks: list[Subtask]) -> bool:
    if not task.summary:
        return False
    last = as_utc(task.last_summarized_at) or EPOCH
    if as_utc(task.updated_at) > last:
        return False
    return not any(as_utc(st.updated_at) > last for st in subtasks)


def get_or_create_note_summary(
    db: Session,
    user_id: str,
    note_id: str,
    summarizer: Summarizer,
    clock: Clock,
    *,
    title: Optional[str] = None,
    content: Optional[str] = None,
    timeout_s: Optional[float] = None,
) -> SummaryResult:
    """
    Return the note's summary, regenerating it when the cached one is stale.

    ``title``/``content`` are the caller's fresh copy of the note (what the
    editor currently shows); the stored values are used when omitted.
    """
    note = get_note(db, user_id, note_id)
    text = note.content if content is None else content
    if not text or not text.strip():
        raise ValidationError("Note content is empty. Cannot summarize.")

    if note_summary_is_fresh(note):
        logger.info("note %s: summary served from cache", note.id)
        return SummaryResult(summary=note.summary_content, cached=True)

    summary = call_summarizer(
        summarizer,
        note.title if title is None else title,
        text,
        timeout_s or settings.SUMMARIZER_TIMEOUT_S,
    )

    now = clock.now()
    note.summary_content = summary
    note.summary_version = now
    # explicit assignment keeps the onupdate hook from stamping a later time
    note.updated_at = now
    db.commit()
    db.refresh(note)
    logger.info("note %s: summary regenerated", note.id)
    return SummaryResult(summary=summary, cached=False)


def get_or_create_task_summary(
    db: Session,
    user_id: str,
    task_id: str,
    summarizer: Summarizer,
    clock: Clock,
    *,
    timeout_s: Optional[float] = None,
) -> SummaryResult:
    """Return the task's summary built from its non-empty subtasks, regenerating when stale."""
    task = get_task(db, user_id, task_id)
    subtasks = qualifying_subtasks(task)
    if not subtasks:
        raise ValidationError("No valid subtasks available for summarization")

    if task_summary_is_fresh(task, subtasks):
        logger.info("task %s: summary served from cache", task.id)
        return SummaryResult(summary=task.summary, cached=True)

    summary = call_summarizer(
        summarizer,
        task.title,
        [st.content for st in subtasks],
        timeout_s or settings.SUMMARIZER_TIMEOUT_S,
    )

    now = clock.now()
    task.summary = summary
    task.last_summarized_at = now
    task.updated_at = now
    db.commit()
    db.refresh(task)
    logger.info("task %s: summary regenerated from %d subtasks", task.id, len(subtasks))
    return SummaryResult(summary=summary, cached=False)

from datetime import timedelta

import pytest

from app.notes.schemas import NoteCreate, NoteUpdate
from app.notes.service import create_note, get_note, update_note
from app.shared.clock import as_utc
from app.shared.errors import NotFoundError, SummarizationError, ValidationError
from app.summaries.cache import get_or_create_note_summary, get_or_create_task_summary
from app.tasks.schemas import SubtaskCreate, SubtaskUpdate, TaskCreate, TaskUpdate
from app.tasks.service import add_subtask, create_task, delete_subtask, get_task, update_subtask, update_task

OWNER = "owner-1"


@pytest.fixture
def note(db, clock):
    return create_note(db, OWNER, NoteCreate(title="Groceries", content="hello"), clock)


@pytest.fixture
def task(db, clock):
    t = create_task(db, OWNER, TaskCreate(title="Launch"), clock)
    add_subtask(db, OWNER, t.id, SubtaskCreate(content="write changelog"), clock)
    add_subtask(db, OWNER, t.id, SubtaskCreate(content="   "), clock)
    return get_task(db, OWNER, t.id)


# --- notes: exact-match policy ---

def test_note_first_call_summarizes_then_serves_cache(db, clock, summarizer, note):
    t0 = as_utc(note.updated_at)

    first = get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    assert (first.summary, first.cached) == ("short summary", False)
    assert summarizer.calls == [("Groceries", "hello")]

    stored = get_note(db, OWNER, note.id)
    assert as_utc(stored.updated_at) == as_utc(stored.summary_version)
    assert as_utc(stored.updated_at) > t0

    second = get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    assert (second.summary, second.cached) == ("short summary", True)
    assert len(summarizer.calls) == 1


def test_note_edit_invalidates_cache(db, clock, summarizer, note):
    get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    update_note(db, OWNER, note.id, NoteUpdate(content="hello again"), clock)

    summarizer.reply = "newer summary"
    out = get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    assert (out.summary, out.cached) == ("newer summary", False)
    assert summarizer.calls[-1] == ("Groceries", "hello again")


def test_note_updated_at_moved_backwards_still_invalidates(db, clock, summarizer, note):
    get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    stored = get_note(db, OWNER, note.id)
    stored.updated_at = stored.updated_at - timedelta(days=1)
    db.commit()

    out = get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    assert out.cached is False
    assert len(summarizer.calls) == 2


def test_note_uses_fresh_content_from_caller(db, clock, summarizer, note):
    get_or_create_note_summary(db, OWNER, note.id, summarizer, clock, title="Draft", content="unsaved text")
    assert summarizer.calls == [("Draft", "unsaved text")]


@pytest.mark.parametrize("content", ["", "   \n\t"])
def test_note_empty_content_is_rejected_even_when_cached(db, clock, summarizer, note, content):
    get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    with pytest.raises(ValidationError):
        get_or_create_note_summary(db, OWNER, note.id, summarizer, clock, content=content)
    assert len(summarizer.calls) == 1


def test_note_of_another_owner_is_not_found(db, clock, summarizer, note):
    with pytest.raises(NotFoundError):
        get_or_create_note_summary(db, "someone-else", note.id, summarizer, clock)
    assert summarizer.calls == []


def test_note_summarizer_failure_leaves_note_untouched(db, clock, summarizer, note):
    before = (note.summary_content, note.summary_version, as_utc(note.updated_at))
    summarizer.error = RuntimeError("upstream 503")

    with pytest.raises(SummarizationError):
        get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)

    db.expire_all()
    stored = get_note(db, OWNER, note.id)
    assert (stored.summary_content, stored.summary_version, as_utc(stored.updated_at)) == before

    # eligible for retry on the next request
    summarizer.error = None
    assert get_or_create_note_summary(db, OWNER, note.id, summarizer, clock).cached is False


def test_note_blank_summary_counts_as_failure(db, clock, summarizer, note):
    summarizer.reply = "   "
    with pytest.raises(SummarizationError):
        get_or_create_note_summary(db, OWNER, note.id, summarizer, clock)
    assert get_note(db, OWNER, note.id).summary_content is None


def test_note_summarizer_timeout(db, clock, summarizer, note):
    summarizer.delay = 0.5
    with pytest.raises(SummarizationError):
        get_or_create_note_summary(db, OWNER, note.id, summarizer, clock, timeout_s=0.05)
    assert get_note(db, OWNER, note.id).summary_content is None


# --- tasks: newer-or-equal policy ---

def test_task_only_non_empty_subtasks_are_summarized(db, clock, summarizer, task):
    out = get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    assert out.cached is False
    assert summarizer.calls == [("Launch", ["write changelog"])]

    again = get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    assert (again.summary, again.cached) == ("short summary", True)
    assert len(summarizer.calls) == 1


def test_task_subtask_edit_invalidates_cache(db, clock, summarizer, task):
    get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    sub = next(st for st in task.subtasks if st.content.strip())
    update_subtask(db, OWNER, task.id, sub.id, SubtaskUpdate(content="write changelog and blog post"), clock)

    out = get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    assert out.cached is False
    assert summarizer.calls[-1] == ("Launch", ["write changelog and blog post"])


def test_task_empty_subtask_edit_does_not_count(db, clock, summarizer, task):
    get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    blank = next(st for st in task.subtasks if not st.content.strip())
    update_subtask(db, OWNER, task.id, blank.id, SubtaskUpdate(completed=True), clock)

    assert get_or_create_task_summary(db, OWNER, task.id, summarizer, clock).cached is True


def test_task_marker_equal_to_latest_change_is_fresh(db, clock, summarizer, task):
    get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    stored = get_task(db, OWNER, task.id)
    for st in stored.subtasks:
        st.updated_at = stored.last_summarized_at
    db.commit()

    assert get_or_create_task_summary(db, OWNER, task.id, summarizer, clock).cached is True


def test_task_without_usable_subtasks_is_rejected(db, clock, summarizer):
    t = create_task(db, OWNER, TaskCreate(title="Empty"), clock)
    add_subtask(db, OWNER, t.id, SubtaskCreate(content=""), clock)
    with pytest.raises(ValidationError):
        get_or_create_task_summary(db, OWNER, t.id, summarizer, clock)
    assert summarizer.calls == []


def test_task_summarizer_failure_keeps_marker(db, clock, summarizer, task):
    summarizer.error = TimeoutError("slow model")
    with pytest.raises(SummarizationError):
        get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)

    db.expire_all()
    stored = get_task(db, OWNER, task.id)
    assert stored.summary is None and stored.last_summarized_at is None


def test_task_own_update_invalidates_cache(db, clock, summarizer, task):
    get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    update_task(db, OWNER, task.id, TaskUpdate(title="Launch v2"), clock)

    out = get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    assert out.cached is False
    assert summarizer.calls[-1] == ("Launch v2", ["write changelog"])
    assert get_or_create_task_summary(db, OWNER, task.id, summarizer, clock).cached is True


def test_task_status_change_invalidates_cache(db, clock, summarizer, task):
    get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    update_task(db, OWNER, task.id, TaskUpdate(status="completed"), clock)
    assert get_or_create_task_summary(db, OWNER, task.id, summarizer, clock).cached is False


def test_subtask_delete_invalidates_cache(db, clock, summarizer, task):
    add_subtask(db, OWNER, task.id, SubtaskCreate(content="tag release"), clock)
    get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)

    extra = next(st for st in get_task(db, OWNER, task.id).subtasks if st.content == "tag release")
    delete_subtask(db, OWNER, task.id, extra.id, clock)

    out = get_or_create_task_summary(db, OWNER, task.id, summarizer, clock)
    assert out.cached is False
    assert summarizer.calls[-1] == ("Launch", ["write changelog"])

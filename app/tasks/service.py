from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, desc
from app.tasks.models import Task, Subtask
from app.tasks.schemas import TaskCreate, TaskUpdate, SubtaskCreate, SubtaskUpdate
from app.shared.clock import Clock
from app.shared.errors import NotFoundError

def get_task(db: Session, user_id: str, task_id: str) -> Task:
    task = db.scalars(select(Task).where(Task.id == task_id, Task.user_id == user_id)).first()
    if not task:
        raise NotFoundError("Task not found")
    return task

def create_task(db: Session, user_id: str, payload: TaskCreate, clock: Clock) -> Task:
    now = clock.now()
    task = Task(user_id=user_id, title=payload.title.strip(), description=payload.description,
                created_at=now, updated_at=now)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task

def list_tasks(db: Session, user_id: str, status: Optional[str] = None) -> list[Task]:
    stmt = select(Task).where(Task.user_id == user_id)
    if status:
        stmt = stmt.where(Task.status == status)
    return list(db.scalars(stmt.order_by(desc(Task.created_at))).all())

def update_task(db: Session, user_id: str, task_id: str, payload: TaskUpdate, clock: Clock) -> Task:
    task = get_task(db, user_id, task_id)
    changed = False
    if payload.title is not None and payload.title.strip() and payload.title.strip() != task.title:
        task.title = payload.title.strip(); changed = True
    if payload.description is not None and payload.description != task.description:
        task.description = payload.description; changed = True
    if payload.status is not None and payload.status != task.status:
        task.status = payload.status; changed = True
    if changed:
        task.updated_at = clock.now()
        db.commit()
        db.refresh(task)
    return task

def delete_task(db: Session, user_id: str, task_id: str) -> None:
    task = get_task(db, user_id, task_id)
    db.delete(task)
    db.commit()

# --- subtasks: always reached through the owning task, so ownership is checked once ---

def _get_subtask(task: Task, subtask_id: str) -> Subtask:
    for st in task.subtasks:
        if st.id == subtask_id:
            return st
    raise NotFoundError("Subtask not found")

def add_subtask(db: Session, user_id: str, task_id: str, payload: SubtaskCreate, clock: Clock) -> Subtask:
    task = get_task(db, user_id, task_id)
    now = clock.now()
    st = Subtask(task_id=task.id, content=payload.content, created_at=now, updated_at=now)
    db.add(st)
    db.commit()
    db.refresh(st)
    return st

def update_subtask(db: Session, user_id: str, task_id: str, subtask_id: str,
                   payload: SubtaskUpdate, clock: Clock) -> Subtask:
    st = _get_subtask(get_task(db, user_id, task_id), subtask_id)
    changed = False
    if payload.content is not None and payload.content != st.content:
        st.content = payload.content; changed = True
    if payload.completed is not None and payload.completed != st.completed:
        st.completed = payload.completed; changed = True
    if changed:
        st.updated_at = clock.now()
        db.commit()
        db.refresh(st)
    return st

def delete_subtask(db: Session, user_id: str, task_id: str, subtask_id: str, clock: Clock) -> None:
    task = get_task(db, user_id, task_id)
    st = _get_subtask(task, subtask_id)
    task.subtasks.remove(st)
    # a removed child leaves no newer timestamp behind; bump the parent instead
    task.updated_at = clock.now()
    db.commit()

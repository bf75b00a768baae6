# app/tasks/api.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.shared.db import get_db
from app.shared.auth import get_current_user
from app.shared.clock import Clock
from app.shared.deps import get_clock
from app.shared.http import ok
from app.tasks.schemas import TaskCreate, TaskUpdate, TaskOut, SubtaskCreate, SubtaskUpdate, SubtaskOut
from app.tasks.service import (
    create_task,
    list_tasks,
    get_task,
    update_task,
    delete_task,
    add_subtask,
    update_subtask,
    delete_subtask,
)

router = APIRouter(prefix="/tasks", tags=["Tasks"])

def _task_out(task) -> dict:
    return TaskOut.model_validate(task).model_dump(mode="json")

def _subtask_out(st) -> dict:
    return SubtaskOut.model_validate(st).model_dump(mode="json")

@router.post("", status_code=201)
def api_create_task(payload: TaskCreate, user = Depends(get_current_user),
                    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    return ok(_task_out(create_task(db, user["sub"], payload, clock)), message="Task created")

@router.get("")
def api_list_tasks(status: str | None = Query(None, pattern="^(pending|completed)$"),
                   user = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok({"items": [_task_out(t) for t in list_tasks(db, user["sub"], status=status)]})

@router.get("/{task_id}")
def api_get_task(task_id: str, user = Depends(get_current_user), db: Session = Depends(get_db)):
    return ok(_task_out(get_task(db, user["sub"], task_id)))

@router.patch("/{task_id}")
def api_update_task(task_id: str, payload: TaskUpdate, user = Depends(get_current_user),
                    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    return ok(_task_out(update_task(db, user["sub"], task_id, payload, clock)), message="Task updated")

@router.delete("/{task_id}")
def api_delete_task(task_id: str, user = Depends(get_current_user), db: Session = Depends(get_db)):
    delete_task(db, user["sub"], task_id)
    return ok({"deleted": True}, message="Task deleted")

@router.post("/{task_id}/subtasks", status_code=201)
def api_add_subtask(task_id: str, payload: SubtaskCreate, user = Depends(get_current_user),
                    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    return ok(_subtask_out(add_subtask(db, user["sub"], task_id, payload, clock)), message="Subtask created")

@router.patch("/{task_id}/subtasks/{subtask_id}")
def api_update_subtask(task_id: str, subtask_id: str, payload: SubtaskUpdate, user = Depends(get_current_user),
                       db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    st = update_subtask(db, user["sub"], task_id, subtask_id, payload, clock)
    return ok(_subtask_out(st), message="Subtask updated")

@router.delete("/{task_id}/subtasks/{subtask_id}")
def api_delete_subtask(task_id: str, subtask_id: str, user = Depends(get_current_user),
                       db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    delete_subtask(db, user["sub"], task_id, subtask_id, clock)
    return ok({"deleted": True}, message="Subtask deleted")

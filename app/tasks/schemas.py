from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict

class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""

class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    status: Optional[Literal["pending", "completed"]] = None

class SubtaskCreate(BaseModel):
    content: str = ""

class SubtaskUpdate(BaseModel):
    content: Optional[str] = None
    completed: Optional[bool] = None

class SubtaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    task_id: str
    content: str
    completed: bool
    created_at: datetime
    updated_at: datetime

class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    title: str
    description: str
    status: str
    summary: str | None = None
    last_summarized_at: datetime | None = None
    subtasks: List[SubtaskOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

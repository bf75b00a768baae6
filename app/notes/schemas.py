from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = ""

class NoteUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None

class NoteSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    content: str
    version: datetime

class NoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    title: str
    content: str
    summary: NoteSummaryOut | None = None
    created_at: datetime
    updated_at: datetime


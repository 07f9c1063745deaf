"""Note domain model."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime, timezone
from uuid import uuid4


class NoteCreate(BaseModel):
    """Payload for creating a note."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    content: str = ""
    task_date: Optional[date] = Field(default=None, alias="taskDate")


class NoteUpdate(BaseModel):
    """Payload for patching a note. ``None`` keeps the current value."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    content: Optional[str] = None
    pinned: Optional[bool] = None
    archived: Optional[bool] = None
    task_date: Optional[date] = Field(default=None, alias="taskDate")


class Note(BaseModel):
    """A short text note owned by exactly one user."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str
    title: str = ""
    content: str = ""
    task_date: Optional[date] = None
    pinned: bool = False
    archived: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NoteView(Note):
    """A note as rendered in an ordered view, with its relative date label."""
    date_label: str = ""

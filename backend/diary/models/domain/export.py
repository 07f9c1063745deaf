"""Export document models."""

from pydantic import BaseModel
from datetime import datetime

from diary.models.enums import NoteStatusLabel


class ExportEntry(BaseModel):
    """One note, already resolved to display strings."""
    id: str
    title: str
    content: str
    task_date: str
    status: NoteStatusLabel
    created_at: str
    updated_at: str


class ExportSummary(BaseModel):
    total: int = 0
    pinned: int = 0
    archived: int = 0
    active: int = 0


class ExportDocument(BaseModel):
    """Renderer-agnostic payload handed to an ``ExportRenderer``."""
    title: str
    generated_at: datetime
    entries: list[ExportEntry]
    summary: ExportSummary

"""
Diary models.

Usage:
    from diary.models import Note, NoteCreate, NoteUpdate, User
    from diary.models import SortKey, DateFilter, ExportFormat
"""

# --- Enums & utilities ---
from diary.models.enums import (
    SortKey,
    DateFilter,
    NoteStatusLabel,
    ExportFormat,
    normalize_key,
)

# --- Domain models ---
from diary.models.domain import (
    User, UserRegister, UserLogin, UserRename, UserEnvelope,
    Note, NoteCreate, NoteUpdate, NoteView,
    Session,
    ExportDocument, ExportEntry, ExportSummary,
)

__all__ = [
    # Enums
    "SortKey", "DateFilter", "NoteStatusLabel", "ExportFormat", "normalize_key",
    # Domain
    "User", "UserRegister", "UserLogin", "UserRename", "UserEnvelope",
    "Note", "NoteCreate", "NoteUpdate", "NoteView",
    "Session",
    "ExportDocument", "ExportEntry", "ExportSummary",
]

"""Domain models: users, notes, sessions and export documents."""

from diary.models.domain.user import User, UserRegister, UserLogin, UserRename, UserEnvelope
from diary.models.domain.note import Note, NoteCreate, NoteUpdate, NoteView
from diary.models.domain.session import Session
from diary.models.domain.export import ExportDocument, ExportEntry, ExportSummary

__all__ = [
    "User", "UserRegister", "UserLogin", "UserRename", "UserEnvelope",
    "Note", "NoteCreate", "NoteUpdate", "NoteView",
    "Session",
    "ExportDocument", "ExportEntry", "ExportSummary",
]

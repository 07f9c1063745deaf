"""
Dependency injection for FastAPI routes.

Provides typed service dependencies that enable IDE navigation (Ctrl+Click).
"""

from typing import Annotated
from fastapi import Request, Depends

from diary.config import Settings
from diary.errors import Unauthorized
from diary.models import User
from diary.services.credentials import CredentialStore
from diary.services.export import ExportService
from diary.services.notes import NoteRepository
from diary.services.sessions import SessionManager


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credentials


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_note_repository(request: Request) -> NoteRepository:
    return request.app.state.notes


def get_export_service(request: Request) -> ExportService:
    return request.app.state.exports


SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
CredentialStoreDep = Annotated[CredentialStore, Depends(get_credential_store)]
SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]
NoteRepositoryDep = Annotated[NoteRepository, Depends(get_note_repository)]
ExportServiceDep = Annotated[ExportService, Depends(get_export_service)]


def get_session_token(request: Request, settings: SettingsDep) -> str | None:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


SessionTokenDep = Annotated[str | None, Depends(get_session_token)]


async def get_current_user(token: SessionTokenDep, sessions: SessionManagerDep) -> User:
    """Resolve the session cookie or reject the request before any note data is touched."""
    user = await sessions.resolve_session(token)
    if user is None:
        raise Unauthorized()
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]

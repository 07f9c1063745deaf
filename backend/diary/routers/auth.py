"""Authentication routes: register, login, logout, current user."""

from fastapi import APIRouter, Response

from diary.config import Settings
from diary.dependencies import (
    CredentialStoreDep,
    CurrentUserDep,
    SessionManagerDep,
    SessionTokenDep,
    SettingsDep,
)
from diary.models import User, UserEnvelope, UserLogin, UserRegister, UserRename
from diary.services.sessions import SessionManager

router = APIRouter()


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TTL_HOURS * 3600,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def _start_session(
    response: Response, user: User, sessions: SessionManager, settings: Settings
) -> UserEnvelope:
    token = sessions.create_session(user)
    _set_session_cookie(response, token, settings)
    return UserEnvelope(user=user)


@router.post("/register", response_model=UserEnvelope, status_code=201)
async def register(
    body: UserRegister,
    response: Response,
    credentials: CredentialStoreDep,
    sessions: SessionManagerDep,
    settings: SettingsDep,
):
    user = await credentials.register(
        body.name, body.email, body.password, body.password_confirm
    )
    return _start_session(response, user, sessions, settings)


@router.post("/login", response_model=UserEnvelope)
async def login(
    body: UserLogin,
    response: Response,
    credentials: CredentialStoreDep,
    sessions: SessionManagerDep,
    settings: SettingsDep,
):
    user = await credentials.verify(body.email, body.password)
    return _start_session(response, user, sessions, settings)


@router.post("/logout")
async def logout(
    response: Response,
    user: CurrentUserDep,
    token: SessionTokenDep,
    sessions: SessionManagerDep,
    settings: SettingsDep,
):
    sessions.destroy_session(token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/me", response_model=UserEnvelope)
async def me(user: CurrentUserDep):
    return UserEnvelope(user=user)


@router.patch("/me", response_model=UserEnvelope)
async def rename_me(body: UserRename, user: CurrentUserDep, credentials: CredentialStoreDep):
    return UserEnvelope(user=await credentials.rename(user.id, body.name))

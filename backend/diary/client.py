"""
Async client for the Diary API, plus the notes controller a UI sits on.

``DiaryClient`` is the transport: one method per route, cookies kept by the
underlying httpx client. ``NotesController`` holds the user's notes and the
current search/filter/sort state, and serializes every mutate-then-refresh
cycle so two refreshes never interleave.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

import httpx

from diary.logging import get_logger
from diary.models import DateFilter, Note, NoteUpdate, SortKey, User
from diary.services.view import relative_date_label, view

logger = get_logger('client')

DEFAULT_BASE_URL = "http://127.0.0.1:3001/api"
DEFAULT_TIMEOUT = 10.0


class DiaryClientError(Exception):
    """A failed call, with the status and the server's ``error`` message."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


def _error_from_response(response: httpx.Response) -> DiaryClientError:
    try:
        payload = response.json()
    except json.JSONDecodeError:
        payload = {}
    message = payload.get("error") if isinstance(payload, dict) else None
    return DiaryClientError(response.status_code, message or response.reason_phrase)


class DiaryClient:
    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DiaryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, params=params, json=json_body)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise DiaryClientError(0, "Failed to connect to server. Please try again.") from e
        if response.status_code >= 400:
            raise _error_from_response(response)
        return response

    # Auth
    async def register(self, name: str, email: str, password: str, password_confirm: str) -> User:
        response = await self._request(
            "POST",
            "/auth/register",
            json_body={
                "name": name,
                "email": email,
                "password": password,
                "passwordConfirm": password_confirm,
            },
        )
        return User.model_validate(response.json()["user"])

    async def login(self, email: str, password: str) -> User:
        response = await self._request(
            "POST", "/auth/login", json_body={"email": email, "password": password}
        )
        return User.model_validate(response.json()["user"])

    async def logout(self) -> None:
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self._client.cookies.clear()

    async def me(self) -> Optional[User]:
        try:
            response = await self._request("GET", "/auth/me")
        except DiaryClientError as e:
            if e.status_code == 401:
                return None
            raise
        return User.model_validate(response.json()["user"])

    # Notes
    async def list_notes(self) -> list[Note]:
        response = await self._request("GET", "/notes")
        return [Note.model_validate(n) for n in response.json()]

    async def create_note(
        self, title: str, content: str, task_date: Optional[date] = None
    ) -> Note:
        body: dict[str, Any] = {"title": title, "content": content}
        if task_date is not None:
            body["task_date"] = task_date.isoformat()
        response = await self._request("POST", "/notes", json_body=body)
        return Note.model_validate(response.json())

    async def update_note(self, note_id: str, fields: NoteUpdate) -> Note:
        response = await self._request(
            "PUT",
            f"/notes/{note_id}",
            json_body=fields.model_dump(mode="json", exclude_none=True),
        )
        return Note.model_validate(response.json())

    async def delete_note(self, note_id: str) -> None:
        await self._request("DELETE", f"/notes/{note_id}")

    async def export_day(self, day: date, fmt: str = "json") -> bytes:
        response = await self._request(
            "GET", "/notes/export", params={"date": day.isoformat(), "format": fmt}
        )
        return response.content


@dataclass
class ViewState:
    query: str = ""
    date_filter: DateFilter = DateFilter.ALL
    sort_key: SortKey = SortKey.LATEST
    include_archived: bool = True


@dataclass
class NotesController:
    """Client-side state for one signed-in user."""
    client: DiaryClient
    user: Optional[User] = None
    notes: list[Note] = field(default_factory=list)
    state: ViewState = field(default_factory=ViewState)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def sign_in(self, email: str, password: str) -> User:
        self.user = await self.client.login(email, password)
        await self.refresh()
        return self.user

    async def sign_up(self, name: str, email: str, password: str, password_confirm: str) -> User:
        self.user = await self.client.register(name, email, password, password_confirm)
        await self.refresh()
        return self.user

    async def sign_out(self) -> None:
        async with self._lock:
            try:
                await self.client.logout()
            finally:
                self.user = None
                self.notes = []

    async def restore(self) -> Optional[User]:
        """Pick up an existing server session, if any."""
        self.user = await self.client.me()
        if self.user is not None:
            await self.refresh()
        return self.user

    async def refresh(self) -> list[Note]:
        async with self._lock:
            return await self._reload()

    async def _reload(self) -> list[Note]:
        self.notes = await self.client.list_notes()
        return self.notes

    async def _mutate_then_reload(self, mutation: Callable[[], Awaitable[object]]) -> list[Note]:
        async with self._lock:
            await mutation()
            return await self._reload()

    async def save(
        self,
        title: str,
        content: str,
        editing_id: Optional[str] = None,
        task_date: Optional[date] = None,
    ) -> list[Note]:
        if editing_id:
            fields = NoteUpdate(title=title, content=content, task_date=task_date)
            return await self._mutate_then_reload(lambda: self.client.update_note(editing_id, fields))
        return await self._mutate_then_reload(lambda: self.client.create_note(title, content, task_date))

    async def toggle_pin(self, note: Note) -> list[Note]:
        fields = NoteUpdate(pinned=not note.pinned)
        return await self._mutate_then_reload(lambda: self.client.update_note(note.id, fields))

    async def toggle_archive(self, note: Note) -> list[Note]:
        fields = NoteUpdate(archived=not note.archived)
        return await self._mutate_then_reload(lambda: self.client.update_note(note.id, fields))

    async def delete(self, note: Note) -> list[Note]:
        return await self._mutate_then_reload(lambda: self.client.delete_note(note.id))

    def visible(self, today: Optional[date] = None) -> list[Note]:
        return view(
            self.notes,
            query=self.state.query,
            date_filter=self.state.date_filter,
            sort_key=self.state.sort_key,
            today=today,
            include_archived=self.state.include_archived,
        )

    def date_label(self, note: Note, today: Optional[date] = None) -> str:
        return relative_date_label(note.task_date, today or datetime.now(timezone.utc).date())

"""Owner-scoped note storage.

``NoteRepository`` is the one interface the rest of the app sees. The SQLite
implementation backs the server; the in-memory one is the process-local
store used by single-user tools and tests.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import aiosqlite

from diary.database.db import connect
from diary.errors import NotFoundError, StorageError, ValidationError
from diary.logging import get_logger
from diary.models import Note, NoteUpdate

logger = get_logger("services.notes")

NOT_FOUND = "Note not found"
EMPTY_NOTE = "Write something before saving."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_note(row: dict) -> Note:
    return Note(
        id=row["id"],
        owner_id=row["user_id"],
        title=row["title"],
        content=row["content"],
        task_date=row.get("task_date"),
        pinned=bool(row["pinned"]),
        archived=bool(row["archived"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _clean(value: str | None) -> str | None:
    return value.strip() if value is not None else None


def _not_found(op: str, owner_id: str, note_id: str) -> NotFoundError:
    logger.info(f"{op} missed note {note_id[:8]} for user {owner_id[:8]}")
    return NotFoundError(NOT_FOUND)


def _require_text(op: str, owner_id: str, title: str, content: str) -> None:
    """A note keeps at least one of title and content, on create and on edit."""
    if not title and not content:
        logger.info(f"{op} rejected empty note for user {owner_id[:8]}")
        raise ValidationError(EMPTY_NOTE)


class NoteRepository(ABC):
    """CRUD over notes. Every call is scoped to the owning user id."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock

    def _touch(self, previous: datetime | None = None) -> datetime:
        """Current time, nudged forward so ``updated_at`` strictly increases."""
        now = self.clock()
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    def _new_note(
        self, owner_id: str, title: str, content: str, task_date: date | None
    ) -> Note:
        title, content = title.strip(), content.strip()
        _require_text("create", owner_id, title, content)
        now = self._touch()
        return Note(
            id=str(uuid4()),
            owner_id=owner_id,
            title=title,
            content=content,
            task_date=task_date or now.date(),
            pinned=False,
            archived=False,
            created_at=now,
            updated_at=now,
        )

    @abstractmethod
    async def list(self, owner_id: str) -> list[Note]: ...

    @abstractmethod
    async def get(self, owner_id: str, note_id: str) -> Note: ...

    @abstractmethod
    async def create(
        self,
        owner_id: str,
        title: str,
        content: str,
        task_date: date | None = None,
    ) -> Note: ...

    @abstractmethod
    async def patch(self, owner_id: str, note_id: str, fields: NoteUpdate) -> Note: ...

    @abstractmethod
    async def remove(self, owner_id: str, note_id: str) -> None: ...


class SqliteNoteRepository(NoteRepository):
    def __init__(self, db_path: str, clock: Callable[[], datetime] = _utcnow):
        super().__init__(clock)
        self.db_path = db_path

    async def _get_db(self) -> aiosqlite.Connection:
        return await connect(self.db_path)

    @contextmanager
    def _storage(self, op: str, owner_id: str, note_id: str | None = None) -> Iterator[None]:
        try:
            yield
        except aiosqlite.Error as e:
            target = f" note {note_id[:8]}" if note_id else ""
            logger.error(f"{op} failed for user {owner_id[:8]}{target}: {e}")
            raise StorageError() from e

    async def list(self, owner_id: str) -> list[Note]:
        with self._storage("list", owner_id):
            db = await self._get_db()
            try:
                cursor = await db.execute(
                    "SELECT * FROM notes WHERE user_id = ?", (owner_id,)
                )
                rows = await cursor.fetchall()
                return [_row_to_note(dict(r)) for r in rows]
            finally:
                await db.close()

    async def get(self, owner_id: str, note_id: str) -> Note:
        with self._storage("get", owner_id, note_id):
            db = await self._get_db()
            try:
                row = await self._fetch(db, owner_id, note_id)
            finally:
                await db.close()
        if row is None:
            raise _not_found("get", owner_id, note_id)
        return _row_to_note(row)

    async def _fetch(
        self, db: aiosqlite.Connection, owner_id: str, note_id: str
    ) -> dict | None:
        cursor = await db.execute(
            "SELECT * FROM notes WHERE id = ? AND user_id = ?",
            (note_id, owner_id),
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def create(
        self,
        owner_id: str,
        title: str,
        content: str,
        task_date: date | None = None,
    ) -> Note:
        note = self._new_note(owner_id, title, content, task_date)
        with self._storage("create", owner_id, note.id):
            db = await self._get_db()
            try:
                await db.execute(
                    """INSERT INTO notes (id, user_id, title, content, task_date, pinned, archived, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        note.id,
                        note.owner_id,
                        note.title,
                        note.content,
                        note.task_date.isoformat() if note.task_date else None,
                        int(note.pinned),
                        int(note.archived),
                        note.created_at.isoformat(),
                        note.updated_at.isoformat(),
                    ),
                )
                await db.commit()
            finally:
                await db.close()
        logger.info(f"Created note {note.id[:8]} for user {owner_id[:8]}")
        return note

    async def patch(self, owner_id: str, note_id: str, fields: NoteUpdate) -> Note:
        with self._storage("patch", owner_id, note_id):
            db = await self._get_db()
            try:
                existing = await self._fetch(db, owner_id, note_id)
                if existing is None:
                    raise _not_found("patch", owner_id, note_id)
                title, content = _clean(fields.title), _clean(fields.content)
                _require_text(
                    "patch",
                    owner_id,
                    existing["title"] if title is None else title,
                    existing["content"] if content is None else content,
                )
                previous = datetime.fromisoformat(existing["updated_at"])
                await db.execute(
                    """UPDATE notes SET
                         title = COALESCE(?, title),
                         content = COALESCE(?, content),
                         pinned = COALESCE(?, pinned),
                         archived = COALESCE(?, archived),
                         task_date = COALESCE(?, task_date),
                         updated_at = ?
                       WHERE id = ? AND user_id = ?""",
                    (
                        title,
                        content,
                        int(fields.pinned) if fields.pinned is not None else None,
                        int(fields.archived) if fields.archived is not None else None,
                        fields.task_date.isoformat() if fields.task_date else None,
                        self._touch(previous).isoformat(),
                        note_id,
                        owner_id,
                    ),
                )
                updated = await self._fetch(db, owner_id, note_id)
                await db.commit()
            finally:
                await db.close()
        return _row_to_note(updated)

    async def remove(self, owner_id: str, note_id: str) -> None:
        with self._storage("remove", owner_id, note_id):
            db = await self._get_db()
            try:
                cursor = await db.execute(
                    "DELETE FROM notes WHERE id = ? AND user_id = ?",
                    (note_id, owner_id),
                )
                await db.commit()
                deleted = cursor.rowcount > 0
            finally:
                await db.close()
        if not deleted:
            raise _not_found("remove", owner_id, note_id)
        logger.info(f"Deleted note {note_id[:8]} for user {owner_id[:8]}")


class MemoryNoteRepository(NoteRepository):
    """Process-local store. Hands out copies so callers cannot mutate stored notes."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        super().__init__(clock)
        self._notes: dict[str, Note] = {}

    def _owned(self, op: str, owner_id: str, note_id: str) -> Note:
        note = self._notes.get(note_id)
        if note is None or note.owner_id != owner_id:
            raise _not_found(op, owner_id, note_id)
        return note

    async def list(self, owner_id: str) -> list[Note]:
        return [n.model_copy() for n in self._notes.values() if n.owner_id == owner_id]

    async def get(self, owner_id: str, note_id: str) -> Note:
        return self._owned("get", owner_id, note_id).model_copy()

    async def create(
        self,
        owner_id: str,
        title: str,
        content: str,
        task_date: date | None = None,
    ) -> Note:
        note = self._new_note(owner_id, title, content, task_date)
        self._notes[note.id] = note
        return note.model_copy()

    async def patch(self, owner_id: str, note_id: str, fields: NoteUpdate) -> Note:
        current = self._owned("patch", owner_id, note_id)
        changes = {
            k: v
            for k, v in fields.model_dump(exclude={"title", "content"}).items()
            if v is not None
        }
        if fields.title is not None:
            changes["title"] = fields.title.strip()
        if fields.content is not None:
            changes["content"] = fields.content.strip()
        _require_text(
            "patch",
            owner_id,
            changes.get("title", current.title),
            changes.get("content", current.content),
        )
        changes["updated_at"] = self._touch(current.updated_at)
        updated = current.model_copy(update=changes)
        self._notes[note_id] = updated
        return updated.model_copy()

    async def remove(self, owner_id: str, note_id: str) -> None:
        self._owned("remove", owner_id, note_id)
        del self._notes[note_id]

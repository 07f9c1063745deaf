"""Owner-scoped note CRUD, run against both repository implementations."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone

import pytest

from diary.database.db import connect
from diary.errors import NotFoundError, ValidationError
from diary.models import NoteUpdate
from diary.services.notes import MemoryNoteRepository, SqliteNoteRepository


class FrozenClock:
    """Always returns the same instant, to prove updated_at still moves forward."""

    def __init__(self, value: datetime) -> None:
        self.value = value

    def __call__(self) -> datetime:
        return self.value


@pytest.fixture()
def owners(credentials) -> tuple[str, str]:
    async def _register() -> tuple[str, str]:
        alice = await credentials.register("Alice", "alice@example.com", "secret123", "secret123")
        bob = await credentials.register("Bob", "bob@example.com", "secret123", "secret123")
        return alice.id, bob.id

    return asyncio.run(_register())


@pytest.fixture(params=["sqlite", "memory"])
def repo(request, db_path):
    if request.param == "sqlite":
        return SqliteNoteRepository(db_path=db_path)
    return MemoryNoteRepository()


def test_create_then_list_round_trip(repo, owners) -> None:
    alice, _ = owners

    async def _exercise():
        created = await repo.create(alice, "  Shopping  ", "\n milk, eggs \n")
        return created, await repo.list(alice)

    created, notes = asyncio.run(_exercise())

    assert len(notes) == 1
    note = notes[0]
    assert note.id == created.id
    assert note.title == "Shopping"
    assert note.content == "milk, eggs"
    assert note.pinned is False
    assert note.archived is False
    assert note.created_at == note.updated_at
    assert note.owner_id == alice


def test_create_defaults_task_date_to_today(repo, owners) -> None:
    alice, _ = owners
    note = asyncio.run(repo.create(alice, "Today", ""))
    assert note.task_date == datetime.now(timezone.utc).date()


def test_create_keeps_explicit_task_date(repo, owners) -> None:
    alice, _ = owners

    async def _exercise():
        await repo.create(alice, "Dentist", "", date(2026, 11, 2))
        return await repo.list(alice)

    (note,) = asyncio.run(_exercise())
    assert note.task_date == date(2026, 11, 2)


def test_create_rejects_empty_note(repo, owners) -> None:
    alice, _ = owners
    with pytest.raises(ValidationError):
        asyncio.run(repo.create(alice, "   ", "  "))


def test_patch_pinned_leaves_other_fields(repo, owners) -> None:
    alice, _ = owners

    async def _exercise():
        note = await repo.create(alice, "Title", "Body", date(2026, 10, 1))
        return note, await repo.patch(alice, note.id, NoteUpdate(pinned=True))

    before, after = asyncio.run(_exercise())

    assert after.pinned is True
    assert after.title == before.title
    assert after.content == before.content
    assert after.task_date == before.task_date
    assert after.archived is False
    assert after.created_at == before.created_at
    assert after.updated_at > after.created_at


def test_patch_with_frozen_clock_still_advances_updated_at(owners, db_path) -> None:
    alice, _ = owners
    frozen = FrozenClock(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))

    for repo in (SqliteNoteRepository(db_path=db_path, clock=frozen), MemoryNoteRepository(clock=frozen)):
        async def _exercise():
            note = await repo.create(alice, "T", "C")
            first = await repo.patch(alice, note.id, NoteUpdate(archived=True))
            second = await repo.patch(alice, note.id, NoteUpdate(archived=False))
            return note, first, second

        note, first, second = asyncio.run(_exercise())
        assert note.created_at < first.updated_at < second.updated_at


def test_patch_none_means_keep(repo, owners) -> None:
    alice, _ = owners

    async def _exercise():
        note = await repo.create(alice, "Keep me", "Original")
        await repo.patch(alice, note.id, NoteUpdate(pinned=True))
        return await repo.patch(alice, note.id, NoteUpdate(content="  Edited  "))

    note = asyncio.run(_exercise())

    assert note.title == "Keep me"
    assert note.content == "Edited"
    assert note.pinned is True


def test_remove_then_patch_or_remove_is_not_found(repo, owners) -> None:
    alice, _ = owners

    async def _exercise() -> None:
        note = await repo.create(alice, "Gone soon", "")
        await repo.remove(alice, note.id)
        with pytest.raises(NotFoundError):
            await repo.patch(alice, note.id, NoteUpdate(title="again"))
        with pytest.raises(NotFoundError):
            await repo.remove(alice, note.id)
        assert await repo.list(alice) == []

    asyncio.run(_exercise())


def test_other_users_notes_are_invisible(repo, owners) -> None:
    alice, bob = owners

    async def _exercise() -> None:
        bobs = await repo.create(bob, "Bob's secret", "hidden")
        await repo.create(alice, "Alice's note", "")

        alice_notes = await repo.list(alice)
        assert [n.title for n in alice_notes] == ["Alice's note"]

        with pytest.raises(NotFoundError) as on_get:
            await repo.get(alice, bobs.id)
        with pytest.raises(NotFoundError) as on_patch:
            await repo.patch(alice, bobs.id, NoteUpdate(title="hijacked"))
        with pytest.raises(NotFoundError) as on_remove:
            await repo.remove(alice, bobs.id)
        with pytest.raises(NotFoundError) as on_missing:
            await repo.remove(alice, "does-not-exist")

        assert on_patch.value.message == on_missing.value.message
        assert on_get.value.message == on_remove.value.message

        (still_there,) = await repo.list(bob)
        assert still_there.title == "Bob's secret"

    asyncio.run(_exercise())


def test_memory_repository_hands_out_copies(owners) -> None:
    alice, _ = owners
    repo = MemoryNoteRepository()

    async def _exercise():
        note = await repo.create(alice, "Original", "")
        note.title = "Mutated by caller"
        return await repo.get(alice, note.id)

    assert asyncio.run(_exercise()).title == "Original"


@pytest.mark.parametrize(
    "fields",
    [
        NoteUpdate(title="  ", content=""),
        NoteUpdate(title=""),
    ],
)
def test_patch_cannot_empty_a_note(repo, owners, fields) -> None:
    alice, _ = owners

    async def _exercise():
        note = await repo.create(alice, "Only a title", "")
        with pytest.raises(ValidationError):
            await repo.patch(alice, note.id, fields)
        return await repo.get(alice, note.id)

    kept = asyncio.run(_exercise())
    assert kept.title == "Only a title"


def test_patch_may_clear_one_field_if_the_other_remains(repo, owners) -> None:
    alice, _ = owners

    async def _exercise():
        note = await repo.create(alice, "Title", "Body")
        return await repo.patch(alice, note.id, NoteUpdate(title=""))

    note = asyncio.run(_exercise())
    assert note.title == ""
    assert note.content == "Body"


def test_missed_lookups_are_logged_with_owner_and_note(repo, owners, caplog) -> None:
    alice, _ = owners
    caplog.set_level(logging.INFO, logger="diary")

    with pytest.raises(NotFoundError):
        asyncio.run(repo.remove(alice, "0123456789abcdef"))

    assert any(
        "remove" in r.getMessage() and alice[:8] in r.getMessage() and "01234567" in r.getMessage()
        for r in caplog.records
    )


def test_deleting_a_user_deletes_their_notes(db_path, owners) -> None:
    alice, bob = owners
    repo = SqliteNoteRepository(db_path=db_path)

    async def _exercise():
        await repo.create(alice, "Goes with Alice", "")
        await repo.create(alice, "Also goes", "")
        await repo.create(bob, "Stays", "")

        db = await connect(db_path)
        try:
            await db.execute("DELETE FROM users WHERE id = ?", (alice,))
            await db.commit()
        finally:
            await db.close()

        return await repo.list(alice), await repo.list(bob)

    alices, bobs = asyncio.run(_exercise())
    assert alices == []
    assert [n.title for n in bobs] == ["Stays"]

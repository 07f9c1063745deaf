"""Note routes. Every route resolves the session before touching note data."""

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query, Response

from diary.dependencies import CurrentUserDep, ExportServiceDep, NoteRepositoryDep
from diary.errors import ValidationError
from diary.models import DateFilter, Note, NoteCreate, NoteUpdate, NoteView, SortKey
from diary.services.export import RenderedExport
from diary.services.view import labelled, view

router = APIRouter()


def _download(rendered: RenderedExport) -> Response:
    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
    )


@router.get("", response_model=list[Note])
async def list_notes(user: CurrentUserDep, repo: NoteRepositoryDep):
    return await repo.list(user.id)


@router.post("", response_model=Note, status_code=201)
async def create_note(body: NoteCreate, user: CurrentUserDep, repo: NoteRepositoryDep):
    return await repo.create(user.id, body.title, body.content, body.task_date)


@router.get("/view", response_model=list[NoteView])
async def view_notes(
    user: CurrentUserDep,
    repo: NoteRepositoryDep,
    q: str = Query(default=""),
    date_filter: Optional[str] = Query(default=None, alias="date"),
    sort: Optional[str] = Query(default=None),
    include_archived: bool = Query(default=True),
    today: Optional[date] = Query(default=None),
):
    try:
        date_filter = DateFilter.parse(date_filter)
        sort_key = SortKey.parse(sort)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    today = today or datetime.now(timezone.utc).date()
    notes = await repo.list(user.id)
    ordered = view(
        notes,
        query=q,
        date_filter=date_filter,
        sort_key=sort_key,
        today=today,
        include_archived=include_archived,
    )
    return labelled(ordered, today)


@router.get("/export")
async def export_day(
    user: CurrentUserDep,
    repo: NoteRepositoryDep,
    exports: ExportServiceDep,
    day: date = Query(alias="date"),
    fmt: str = Query(default="json", alias="format"),
):
    notes = await repo.list(user.id)
    return _download(exports.export_for_date(notes, day, fmt))


@router.get("/{note_id}", response_model=Note)
async def get_note(note_id: str, user: CurrentUserDep, repo: NoteRepositoryDep):
    return await repo.get(user.id, note_id)


@router.get("/{note_id}/export")
async def export_note(
    note_id: str,
    user: CurrentUserDep,
    repo: NoteRepositoryDep,
    exports: ExportServiceDep,
    fmt: str = Query(default="json", alias="format"),
):
    note = await repo.get(user.id, note_id)
    return _download(exports.export_note(note, fmt))


@router.put("/{note_id}", response_model=Note)
async def update_note(
    note_id: str, body: NoteUpdate, user: CurrentUserDep, repo: NoteRepositoryDep
):
    return await repo.patch(user.id, note_id, body)


@router.delete("/{note_id}", status_code=204)
async def delete_note(note_id: str, user: CurrentUserDep, repo: NoteRepositoryDep):
    await repo.remove(user.id, note_id)
    return Response(status_code=204)

"""
Export of notes as downloadable documents.

``build_export`` turns notes into an ``ExportDocument``; renderers turn that
document into bytes. Which renderers exist is decided when ``ExportService``
is constructed.
"""

import csv
import io
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone

from diary.errors import EmptyResultError, ValidationError
from diary.logging import get_logger
from diary.models import (
    ExportDocument,
    ExportEntry,
    ExportFormat,
    ExportSummary,
    Note,
    NoteStatusLabel,
)

logger = get_logger('services.export')

UNTITLED = "Untitled"
EMPTY_CONTENT = "(Empty note)"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolved_date(note: Note) -> date:
    """The calendar day a note belongs to: its task date, else its creation day."""
    return note.task_date or note.created_at.date()


def format_day(day: date) -> str:
    return day.strftime("%A, %d %B %Y")


def format_timestamp(value: datetime) -> str:
    return value.strftime("%d %b %Y, %H:%M")


def status_label(note: Note) -> NoteStatusLabel:
    if note.pinned and note.archived:
        return NoteStatusLabel.PINNED_ARCHIVED
    if note.pinned:
        return NoteStatusLabel.PINNED
    if note.archived:
        return NoteStatusLabel.ARCHIVED
    return NoteStatusLabel.ACTIVE


def to_entry(note: Note) -> ExportEntry:
    return ExportEntry(
        id=note.id,
        title=note.title or UNTITLED,
        content=note.content or EMPTY_CONTENT,
        task_date=format_day(resolved_date(note)),
        status=status_label(note),
        created_at=format_timestamp(note.created_at),
        updated_at=format_timestamp(note.updated_at),
    )


def summarize(notes: list[Note]) -> ExportSummary:
    pinned = sum(1 for n in notes if n.pinned)
    archived = sum(1 for n in notes if n.archived)
    active = sum(1 for n in notes if not n.pinned and not n.archived)
    return ExportSummary(total=len(notes), pinned=pinned, archived=archived, active=active)


def build_export(
    notes: Iterable[Note], *, title: str, generated_at: datetime | None = None
) -> ExportDocument:
    notes = list(notes)
    if not notes:
        raise EmptyResultError()
    return ExportDocument(
        title=title,
        generated_at=generated_at or _utcnow(),
        entries=[to_entry(n) for n in notes],
        summary=summarize(notes),
    )


def select_for_date(notes: Iterable[Note], day: date) -> list[Note]:
    return [n for n in notes if resolved_date(n) == day]


class ExportRenderer(ABC):
    """Turns an ``ExportDocument`` into file bytes."""
    media_type: str
    extension: str

    @abstractmethod
    def render(self, document: ExportDocument) -> bytes: ...


class JsonRenderer(ExportRenderer):
    media_type = "application/json"
    extension = "json"

    def render(self, document: ExportDocument) -> bytes:
        return document.model_dump_json(indent=2).encode("utf-8")


class CsvRenderer(ExportRenderer):
    media_type = "text/csv"
    extension = "csv"

    _COLUMNS: tuple[str, ...] = (
        "title",
        "content",
        "task_date",
        "status",
        "created_at",
        "updated_at",
    )

    def render(self, document: ExportDocument) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(self._COLUMNS)
        for entry in document.entries:
            writer.writerow(
                [
                    entry.title,
                    entry.content,
                    entry.task_date,
                    entry.status.value,
                    entry.created_at,
                    entry.updated_at,
                ]
            )
        return buffer.getvalue().encode("utf-8")


class MarkdownRenderer(ExportRenderer):
    media_type = "text/markdown"
    extension = "md"

    def render(self, document: ExportDocument) -> bytes:
        summary = document.summary
        lines = [
            f"# {document.title}",
            "",
            f"_Generated {format_timestamp(document.generated_at)}_",
            "",
            f"Total: {summary.total} | Pinned: {summary.pinned} | "
            f"Archived: {summary.archived} | Active: {summary.active}",
        ]
        for entry in document.entries:
            lines += [
                "",
                f"## {entry.title}",
                "",
                f"- Date: {entry.task_date}",
                f"- Status: {entry.status.value}",
                f"- Created: {entry.created_at}",
                f"- Updated: {entry.updated_at}",
                "",
                entry.content,
            ]
        return ("\n".join(lines) + "\n").encode("utf-8")


def default_renderers() -> dict[ExportFormat, ExportRenderer]:
    return {
        ExportFormat.JSON: JsonRenderer(),
        ExportFormat.CSV: CsvRenderer(),
        ExportFormat.MARKDOWN: MarkdownRenderer(),
    }


@dataclass
class RenderedExport:
    """Bytes plus what an HTTP response needs to serve them."""
    content: bytes
    media_type: str
    filename: str
    document: ExportDocument


class ExportService:
    def __init__(
        self,
        renderers: Mapping[ExportFormat, ExportRenderer] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.renderers = dict(renderers if renderers is not None else default_renderers())
        self.clock = clock

    @property
    def formats(self) -> list[ExportFormat]:
        return list(self.renderers)

    def renderer_for(self, fmt: ExportFormat | str) -> ExportRenderer:
        try:
            key = ExportFormat(fmt)
        except ValueError:
            raise ValidationError(f"Unsupported export format: {fmt}") from None
        renderer = self.renderers.get(key)
        if renderer is None:
            raise ValidationError(f"Unsupported export format: {fmt}")
        return renderer

    def export_for_date(
        self, notes: Iterable[Note], day: date, fmt: ExportFormat | str = ExportFormat.JSON
    ) -> RenderedExport:
        renderer = self.renderer_for(fmt)
        selected = select_for_date(notes, day)
        if not selected:
            raise EmptyResultError(f"No notes found for {day.isoformat()}.")
        document = build_export(
            selected, title=f"Notes for {format_day(day)}", generated_at=self.clock()
        )
        logger.info(f"Exported {len(selected)} notes for {day.isoformat()} as {renderer.extension}")
        return RenderedExport(
            content=renderer.render(document),
            media_type=renderer.media_type,
            filename=f"notes-{day.isoformat()}.{renderer.extension}",
            document=document,
        )

    def export_note(self, note: Note, fmt: ExportFormat | str = ExportFormat.JSON) -> RenderedExport:
        renderer = self.renderer_for(fmt)
        document = build_export(
            [note], title=note.title or UNTITLED, generated_at=self.clock()
        )
        return RenderedExport(
            content=renderer.render(document),
            media_type=renderer.media_type,
            filename=f"note-{note.id[:8]}.{renderer.extension}",
            document=document,
        )

"""Export document building and rendering."""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime, timezone

import pytest

from diary.errors import EmptyResultError, ValidationError
from diary.models import ExportFormat, Note, NoteStatusLabel
from diary.services.export import (
    ExportService,
    build_export,
    select_for_date,
    status_label,
    to_entry,
)

GENERATED = datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)
DAY = date(2026, 10, 19)


def note(ident: str, **fields) -> Note:
    defaults = dict(
        owner_id="owner",
        title=f"Note {ident}",
        content="body",
        task_date=DAY,
        created_at=datetime(2026, 10, 18, 9, 15, tzinfo=timezone.utc),
        updated_at=datetime(2026, 10, 19, 10, 45, tzinfo=timezone.utc),
    )
    defaults.update(fields)
    return Note(id=ident, **defaults)


@pytest.fixture()
def service() -> ExportService:
    return ExportService(clock=lambda: GENERATED)


@pytest.mark.parametrize(
    "pinned,archived,label",
    [
        (False, False, NoteStatusLabel.ACTIVE),
        (True, False, NoteStatusLabel.PINNED),
        (False, True, NoteStatusLabel.ARCHIVED),
        (True, True, NoteStatusLabel.PINNED_ARCHIVED),
    ],
)
def test_status_label(pinned, archived, label) -> None:
    assert status_label(note("x", pinned=pinned, archived=archived)) is label


def test_entry_fills_placeholders_and_formats_dates() -> None:
    entry = to_entry(note("x", title="", content=""))

    assert entry.title == "Untitled"
    assert entry.content == "(Empty note)"
    assert entry.task_date == "Monday, 19 October 2026"
    assert entry.created_at == "18 Oct 2026, 09:15"
    assert entry.updated_at == "19 Oct 2026, 10:45"


def test_undated_note_belongs_to_its_creation_day() -> None:
    undated = note("x", task_date=None)
    assert select_for_date([undated], date(2026, 10, 18)) == [undated]
    assert select_for_date([undated], DAY) == []


def test_summary_counts() -> None:
    document = build_export(
        [
            note("1"),
            note("2", pinned=True),
            note("3", archived=True),
            note("4", pinned=True, archived=True),
        ],
        title="All",
        generated_at=GENERATED,
    )

    summary = document.summary
    assert (summary.total, summary.pinned, summary.archived, summary.active) == (4, 2, 2, 1)


def test_build_export_refuses_empty_input() -> None:
    with pytest.raises(EmptyResultError):
        build_export([], title="Nothing")


def test_export_for_date_with_no_matches(service) -> None:
    with pytest.raises(EmptyResultError, match="2026-10-20"):
        service.export_for_date([note("1")], date(2026, 10, 20))


def test_json_export(service) -> None:
    rendered = service.export_for_date(
        [note("1"), note("2", task_date=date(2026, 10, 20))], DAY, ExportFormat.JSON
    )

    assert rendered.filename == "notes-2026-10-19.json"
    assert rendered.media_type == "application/json"
    payload = json.loads(rendered.content)
    assert payload["title"] == "Notes for Monday, 19 October 2026"
    assert [e["id"] for e in payload["entries"]] == ["1"]
    assert payload["summary"]["total"] == 1


def test_csv_export_quotes_awkward_content(service) -> None:
    rendered = service.export_for_date(
        [note("1", title="Plans, maybe", content='line one\n"quoted" line two', pinned=True)],
        DAY,
        "csv",
    )

    rows = list(csv.reader(io.StringIO(rendered.content.decode("utf-8"))))
    assert rows[0] == ["title", "content", "task_date", "status", "created_at", "updated_at"]
    assert rows[1][:4] == [
        "Plans, maybe",
        'line one\n"quoted" line two',
        "Monday, 19 October 2026",
        "Pinned",
    ]
    assert rendered.filename.endswith(".csv")


def test_markdown_export(service) -> None:
    rendered = service.export_note(note("abcdef1234", title="Trip", archived=True), "markdown")
    text = rendered.content.decode("utf-8")

    assert text.startswith("# Trip\n")
    assert "## Trip" in text
    assert "- Status: Archived" in text
    assert "Total: 1 | Pinned: 0 | Archived: 1 | Active: 0" in text
    assert rendered.filename == "note-abcdef12.md"


@pytest.mark.parametrize("fmt", ["pdf", "xml", ""])
def test_unsupported_format(service, fmt) -> None:
    with pytest.raises(ValidationError):
        service.export_for_date([note("1")], DAY, fmt)


def test_service_only_offers_configured_renderers() -> None:
    from diary.services.export import CsvRenderer

    csv_only = ExportService(renderers={ExportFormat.CSV: CsvRenderer()})

    assert csv_only.formats == [ExportFormat.CSV]
    with pytest.raises(ValidationError):
        csv_only.renderer_for("json")

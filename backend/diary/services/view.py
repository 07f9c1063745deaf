"""Query/view pipeline: text filter, date window, sort, pinned-first.

Everything here is pure. Nothing is written back to storage.
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone

from diary.models import DateFilter, Note, NoteView, SortKey

RELATIVE_LABEL_DAYS = 6


def matches_query(note: Note, query: str) -> bool:
    query = query.strip().lower()
    if not query:
        return True
    return query in f"{note.title} {note.content}".lower()


def date_window(date_filter: DateFilter, today: date) -> tuple[date, date] | None:
    """Inclusive ``(start, end)`` for a filter, or None when nothing is filtered."""
    if date_filter is DateFilter.TODAY:
        return today, today
    if date_filter is DateFilter.THIS_WEEK:
        # date.weekday(): Monday == 0 ... Sunday == 6
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if date_filter is DateFilter.THIS_MONTH:
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(days=1)
    return None


def in_window(note: Note, window: tuple[date, date] | None) -> bool:
    if window is None:
        return True
    if note.task_date is None:
        return False
    start, end = window
    return start <= note.task_date <= end


def _task_date_key(note: Note) -> date:
    return note.task_date or date.min


def sort_notes(notes: list[Note], sort_key: SortKey) -> list[Note]:
    if sort_key is SortKey.LATEST:
        return sorted(notes, key=lambda n: n.updated_at, reverse=True)
    if sort_key is SortKey.OLDEST:
        return sorted(notes, key=lambda n: n.created_at)
    if sort_key is SortKey.TITLE:
        return sorted(notes, key=lambda n: (n.title.casefold(), n.title))
    if sort_key is SortKey.TASK_DATE_ASC:
        return sorted(notes, key=_task_date_key)
    if sort_key is SortKey.TASK_DATE_DESC:
        return sorted(notes, key=_task_date_key, reverse=True)
    raise ValueError(f"Unknown sort key: {sort_key}")


def pinned_first(notes: list[Note]) -> list[Note]:
    # sorted() is stable, so each partition keeps its incoming order.
    return sorted(notes, key=lambda n: not n.pinned)


def view(
    notes: Iterable[Note],
    query: str = "",
    date_filter: DateFilter | str | None = DateFilter.ALL,
    sort_key: SortKey | str | None = SortKey.LATEST,
    today: date | None = None,
    include_archived: bool = True,
) -> list[Note]:
    """
    Produce the display order for a user's notes.

    :param notes: The user's notes, in any order; not modified
    :param query: Case-insensitive substring matched against title and content
    :param date_filter: Calendar window on ``task_date``
    :param sort_key: Ordering applied before pinned notes are floated up
    :param today: Reference day for the date window, defaults to the current UTC date
    :param include_archived: When False, archived notes are dropped
    :return: A new list in display order
    :rtype: list[Note]
    """
    date_filter = DateFilter.parse(date_filter)
    sort_key = SortKey.parse(sort_key)
    today = today or datetime.now(timezone.utc).date()
    window = date_window(date_filter, today)

    kept = [
        n for n in notes
        if matches_query(n, query)
        and in_window(n, window)
        and (include_archived or not n.archived)
    ]
    return pinned_first(sort_notes(kept, sort_key))


def relative_date_label(task_date: date | None, today: date) -> str:
    """Human label for a task date. Presentation only."""
    if task_date is None:
        return "No date"
    offset = (task_date - today).days
    if offset == 0:
        return "Today"
    if offset == 1:
        return "Tomorrow"
    if offset == -1:
        return "Yesterday"
    if 0 < offset <= RELATIVE_LABEL_DAYS:
        return f"In {offset} days"
    if -RELATIVE_LABEL_DAYS <= offset < 0:
        return f"{-offset} days ago"
    return task_date.strftime("%a, %d %b %Y")


def labelled(notes: Iterable[Note], today: date) -> list[NoteView]:
    return [
        NoteView(**n.model_dump(), date_label=relative_date_label(n.task_date, today))
        for n in notes
    ]

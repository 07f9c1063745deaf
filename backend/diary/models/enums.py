"""
Enum definitions for the Diary API.

The original client sent camelCase values for a few of these; ``parse``
accepts both spellings.
"""
from enum import Enum


class SortKey(str, Enum):
    """Display order applied before the pinned partition."""
    LATEST = "latest"
    OLDEST = "oldest"
    TITLE = "title"
    TASK_DATE_ASC = "task_date_asc"
    TASK_DATE_DESC = "task_date_desc"

    @classmethod
    def parse(cls, value: "str | SortKey | None") -> "SortKey":
        if isinstance(value, cls):
            return value
        if not value:
            return cls.LATEST
        return cls(normalize_key(value))


class DateFilter(str, Enum):
    """Calendar window applied to ``task_date``."""
    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"

    @classmethod
    def parse(cls, value: "str | DateFilter | None") -> "DateFilter":
        if isinstance(value, cls):
            return value
        if not value:
            return cls.ALL
        return cls(normalize_key(value))


class NoteStatusLabel(str, Enum):
    """Human label used by exports."""
    ACTIVE = "Active"
    PINNED = "Pinned"
    ARCHIVED = "Archived"
    PINNED_ARCHIVED = "Pinned, Archived"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"


def normalize_key(value: str) -> str:
    """
    Normalize a wire value to its snake_case enum spelling.

    Examples:
        "thisWeek" -> "this_week"
        "taskDateAsc" -> "task_date_asc"
        " Latest " -> "latest"
        "THIS_WEEK" -> "this_week"
    """
    value = value.strip()
    out = []
    previous = ""
    for ch in value:
        # Split only where a lowercase letter or digit meets an uppercase one.
        if ch.isupper() and (previous.islower() or previous.isdigit()):
            out.append("_")
        out.append(ch.lower())
        previous = ch
    return "".join(out).replace("-", "_").replace(" ", "_")

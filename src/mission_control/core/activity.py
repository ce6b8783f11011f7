"""Event-log records and write-path input validation - no I/O dependencies."""

from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE_SIZE = 50


class ActivityTypes:
    """Pre-defined activity types, for consistency across loggers."""

    EMAIL = "email"
    CALENDAR = "calendar"
    SEARCH = "search"
    TASK = "task"
    COMMAND = "command"
    DOCUMENT = "document"
    INFO = "info"

    @classmethod
    def all(cls) -> list[str]:
        return [value for name, value in vars(cls).items() if name.isupper()]


class InputError(ValueError):
    """Raised when a caller's request is invalid or missing required fields."""

    pass


@dataclass(frozen=True)
class Activity:
    """One record of the durable event log."""

    id: int
    type: str
    title: str
    description: str | None
    metadata: dict[str, Any] | None
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "metadata": self.metadata,
            "createdAt": self.created_at,
        }


def validate_activity(activity_type: str | None, title: str | None) -> tuple[str, str]:
    """Check the required fields of a new activity. Returns them stripped."""
    activity_type = (activity_type or "").strip()
    title = (title or "").strip()
    if not activity_type or not title:
        raise InputError("Type and title are required")
    return activity_type, title


def validate_page(limit: int, offset: int) -> None:
    """Check event-log pagination parameters."""
    if limit <= 0:
        raise InputError(f"limit must be positive, got {limit}")
    if offset < 0:
        raise InputError(f"offset must not be negative, got {offset}")

"""Event log and local task storage interfaces."""

from typing import Any, Protocol

from mission_control.core.activity import Activity
from mission_control.core.schedule import LocalTask


class EventLog(Protocol):
    """Interface for the durable, append-only event log."""

    def append(
        self,
        activity_type: str,
        title: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Append a record. Returns its id."""
        ...

    def query(self, filter_type: str | None = None, limit: int = 50, offset: int = 0) -> list[Activity]:
        """Records ordered by recency, optionally filtered by type."""
        ...

    def find(self, text: str, limit: int = 20) -> list[Activity]:
        """Records whose title or description contains `text`, most recent first."""
        ...


class TaskStore(Protocol):
    """Interface for locally persisted scheduled tasks."""

    def scheduled_tasks(self) -> list[LocalTask]:
        """All local tasks."""
        ...

    def add_scheduled_task(
        self,
        name: str,
        schedule_type: str,
        schedule_expr: str,
        job_id: str | None = None,
        next_run_at: str | None = None,
        status: str = "active",
    ) -> int:
        """Persist a task. Returns its id."""
        ...


class Storage(EventLog, TaskStore, Protocol):
    """The durable handle behind both the event log and local tasks."""

    def close(self) -> None:
        """Release the underlying connection."""
        ...

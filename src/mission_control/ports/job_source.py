"""Recurring job source interface."""

from typing import Protocol

from mission_control.core.schedule import RawJobDescriptor


class JobSource(Protocol):
    """Interface for listing recurring jobs from an external scheduler."""

    def fetch_jobs(self, limit: int | None = None) -> tuple[list[RawJobDescriptor], bool]:
        """Fetch job descriptors. Returns (jobs, ok); never raises."""
        ...

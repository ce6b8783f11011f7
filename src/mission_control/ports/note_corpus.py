"""Note corpus interface."""

from typing import Protocol

from mission_control.core.search import NoteDocument


class NoteCorpus(Protocol):
    """Interface for reading the free-text note corpus."""

    def list_documents(self, limit: int | None = None) -> tuple[list[NoteDocument], bool]:
        """Read every document in the corpus directory, in enumeration order."""
        ...

    def read_main(self) -> tuple[NoteDocument | None, bool]:
        """Read the well-known top-level document."""
        ...

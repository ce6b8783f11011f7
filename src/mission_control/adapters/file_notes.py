"""File-based note corpus adapter."""

import logging
from pathlib import Path

from mission_control.core.search import NoteDocument

logger = logging.getLogger(__name__)


class FileNoteCorpus:
    """
    File-based note corpus.

    Implements NoteCorpus protocol. A directory of markdown notes plus one
    well-known top-level document, both read-only.
    """

    def __init__(self, notes_dir: Path | str, main_note: Path | str | None = None):
        self.notes_dir = Path(notes_dir).expanduser()
        self.main_note = Path(main_note).expanduser() if main_note else None

    def _read(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read note {path}: {e}")
            return None

    def list_documents(self, limit: int | None = None) -> tuple[list[NoteDocument], bool]:
        """Read every *.md note, ordered by file name."""
        try:
            paths = sorted(p for p in self.notes_dir.iterdir() if p.suffix == ".md" and p.is_file())
        except OSError as e:
            logger.info(f"Note directory unavailable: {e}")
            return [], False

        if limit is not None:
            paths = paths[:limit]

        documents = []
        for path in paths:
            text = self._read(path)
            if text is None:
                continue
            documents.append(
                NoteDocument(
                    title=path.stem,
                    path=f"{self.notes_dir.name}/{path.name}",
                    text=text,
                )
            )
        return documents, True

    def read_main(self) -> tuple[NoteDocument | None, bool]:
        """Read the top-level note. (None, False) if it is missing."""
        if self.main_note is None or not self.main_note.is_file():
            return None, False

        text = self._read(self.main_note)
        if text is None:
            return None, False
        return NoteDocument(title=self.main_note.name, path=self.main_note.name, text=text), True

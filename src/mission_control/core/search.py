"""Pure relevance search logic - no I/O dependencies.

Candidates come from the event log and the note corpus; every candidate is
scored with the same heuristic and the merged list is ranked by score.
"""

from dataclasses import dataclass
from typing import Callable, Iterable

from .activity import Activity

MIN_QUERY_LENGTH = 2
DEFAULT_RESULT_LIMIT = 20
SNIPPET_LINES = 3
SNIPPET_FALLBACK_CHARS = 200

TITLE_MATCH_SCORE = 10
OCCURRENCE_SCORE = 2
PROXIMITY_SCORE = 5
PROXIMITY_DIVISOR = 100

ACTIVITY_TYPE = "activity"
MEMORY_TYPE = "memory"


@dataclass(frozen=True)
class Query:
    """A search query as typed, plus its lowercased form."""

    raw: str
    normalized: str

    @classmethod
    def parse(cls, raw: str | None) -> "Query":
        raw = raw or ""
        return cls(raw=raw, normalized=raw.lower())

    @property
    def is_searchable(self) -> bool:
        return len(self.normalized) >= MIN_QUERY_LENGTH


@dataclass(frozen=True)
class NoteDocument:
    """A free-text document from the note corpus."""

    title: str
    path: str
    text: str


@dataclass(frozen=True)
class SearchRecord:
    """One ranked search result."""

    type: str
    title: str
    content: str
    score: float
    path: str | None = None
    timestamp: str | None = None

    def to_dict(self) -> dict:
        data = {"type": self.type, "title": self.title, "content": self.content}
        if self.path is not None:
            data["path"] = self.path
        if self.timestamp is not None:
            data["date"] = self.timestamp
        data["relevance"] = self.score
        return data


SearchSource = Callable[[Query], Iterable[SearchRecord]]


def score_relevance(query: str, text: str) -> float:
    """
    Score how well `text` matches `query`.

    10 if the first line contains the query, plus 2 per non-overlapping
    occurrence, plus up to 5 for an early first occurrence (losing 1 per
    100 characters). Case-insensitive.
    """
    lower_text = text.lower()
    lower_query = query.lower()
    if not lower_query:
        return 0

    score: float = 0
    if lower_query in lower_text.split("\n", 1)[0]:
        score += TITLE_MATCH_SCORE

    score += OCCURRENCE_SCORE * lower_text.count(lower_query)

    first_index = lower_text.find(lower_query)
    if first_index >= 0:
        score += max(0, PROXIMITY_SCORE - first_index / PROXIMITY_DIVISOR)

    return score


def matching_snippet(query: str, text: str) -> str:
    """Up to the first 3 lines containing the query, else the leading 200 chars."""
    lower_query = query.lower()
    lines = [line for line in text.split("\n") if lower_query in line.lower()]
    return "\n".join(lines[:SNIPPET_LINES]) or text[:SNIPPET_FALLBACK_CHARS]


def record_from_activity(query: Query, activity: Activity) -> SearchRecord:
    """Event-log records contribute their stored title and description verbatim."""
    description = activity.description or ""
    return SearchRecord(
        type=ACTIVITY_TYPE,
        title=activity.title,
        content=description,
        score=score_relevance(query.normalized, f"{activity.title} {description}"),
        timestamp=activity.created_at,
    )


def record_from_document(query: Query, document: NoteDocument) -> SearchRecord | None:
    """Score a note document, or None if it does not contain the query."""
    if query.normalized not in document.text.lower():
        return None
    return SearchRecord(
        type=MEMORY_TYPE,
        title=document.title,
        content=matching_snippet(query.normalized, document.text),
        score=score_relevance(query.normalized, document.text),
        path=document.path,
    )


def records_from_documents(query: Query, documents: Iterable[NoteDocument]) -> list[SearchRecord]:
    """Matching documents, in enumeration order."""
    records = []
    for document in documents:
        record = record_from_document(query, document)
        if record is not None:
            records.append(record)
    return records


def rank(records: Iterable[SearchRecord], limit: int = DEFAULT_RESULT_LIMIT) -> list[SearchRecord]:
    """Stable sort by descending score, truncated to `limit`."""
    return sorted(records, key=lambda r: -r.score)[:limit]


def search(
    query: Query,
    sources: Iterable[SearchSource],
    limit: int = DEFAULT_RESULT_LIMIT,
) -> list[SearchRecord]:
    """
    Collect records from each source in order and rank them.

    A query shorter than 2 characters returns [] without calling any source.
    Equal scores keep source-emission order.
    """
    if not query.is_searchable:
        return []

    records: list[SearchRecord] = []
    for source in sources:
        records.extend(source(query))
    return rank(records, limit)

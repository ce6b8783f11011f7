"""Pure mail domain logic - no I/O dependencies."""

import re
from dataclasses import dataclass

DEFAULT_MAIL_QUERY = "is:unread"
DEFAULT_MAIL_LIMIT = 20

UNREAD_LABEL = "UNREAD"

_ADDRESS = re.compile(r"<.*?>")


@dataclass(frozen=True)
class EmailMessage:
    """A mailbox message snapshot (headers and snippet only)."""

    id: str
    thread_id: str
    label_ids: tuple[str, ...]
    snippet: str
    subject: str
    sender: str
    date: str

    @property
    def is_unread(self) -> bool:
        return UNREAD_LABEL in self.label_ids

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "threadId": self.thread_id,
            "labelIds": list(self.label_ids),
            "snippet": self.snippet,
            "subject": self.subject,
            "from": self.sender,
            "date": self.date,
            "isUnread": self.is_unread,
        }


def sender_name(value: str) -> str:
    """Display part of a From header: "Ann <ann@example.com>" -> "Ann"."""
    return _ADDRESS.sub("", value, count=1).strip()

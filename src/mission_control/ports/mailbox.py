"""Mailbox interface."""

from typing import Protocol

from mission_control.core.mail import EmailMessage


class Mailbox(Protocol):
    """Interface for searching a mailbox."""

    def search_messages(self, query: str, limit: int = 20) -> tuple[list[EmailMessage], bool]:
        """Messages matching a provider search query. Returns (messages, ok)."""
        ...

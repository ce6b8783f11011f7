"""gog adapter - subprocess wrapper for Gmail."""

import logging
import os

from mission_control.core.mail import DEFAULT_MAIL_LIMIT, DEFAULT_MAIL_QUERY, EmailMessage, sender_name

from .process import DEFAULT_TIMEOUT, run_json, sanitize_arg

logger = logging.getLogger(__name__)


class GmailAdapter:
    """
    gog subprocess adapter.

    Implements Mailbox protocol. Searches messages via
    `gog gmail messages search <query> --max N --account <account> --json`.
    """

    def __init__(self, account: str = "", binary: str = "gog", timeout: int | float = DEFAULT_TIMEOUT):
        self.account = sanitize_arg(account)
        self.binary = binary
        self.timeout = timeout

    def clean_query(self, query: str | None) -> str:
        """Sanitize caller text for use as the search argument."""
        # A leading dash would be read as an option
        cleaned = sanitize_arg(query or "").strip().lstrip("-").strip()
        return cleaned or DEFAULT_MAIL_QUERY

    def build_command(self, query: str | None, limit: int) -> list[str]:
        cmd = [self.binary, "gmail", "messages", "search", self.clean_query(query), "--max", str(int(limit))]
        if self.account:
            cmd.extend(["--account", self.account])
        cmd.append("--json")
        return cmd

    def search_messages(
        self,
        query: str | None = DEFAULT_MAIL_QUERY,
        limit: int = DEFAULT_MAIL_LIMIT,
    ) -> tuple[list[EmailMessage], bool]:
        """Search the mailbox. Returns (messages, ok); never raises."""
        env = dict(os.environ)
        if self.account:
            env["GOG_ACCOUNT"] = self.account

        data, ok = run_json(self.build_command(query, limit), timeout=self.timeout, env=env)
        if not ok:
            return [], False

        if isinstance(data, dict):
            data = data.get("messages") or []
        if not isinstance(data, list):
            logger.warning(f"Unexpected {self.binary} gmail output format: {type(data).__name__}")
            return [], False

        return self._parse_messages(data), True

    def _parse_messages(self, data: list) -> list[EmailMessage]:
        messages = []
        for msg in data:
            try:
                messages.append(self._parse_message(msg))
            except (AttributeError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed message: {e}")
                continue
        return messages

    def _parse_message(self, msg: dict) -> EmailMessage:
        """Parse a single message from gog JSON."""
        headers = {}
        for header in (msg.get("payload") or {}).get("headers") or []:
            # First occurrence wins, as with repeated Received headers
            headers.setdefault(header.get("name"), header.get("value"))

        return EmailMessage(
            id=str(msg.get("id", "")),
            thread_id=str(msg.get("threadId", "")),
            label_ids=tuple(msg.get("labelIds") or ()),
            snippet=msg.get("snippet") or "",
            subject=headers.get("Subject") or "No Subject",
            sender=sender_name(headers.get("From") or "Unknown"),
            date=headers.get("Date") or "",
        )

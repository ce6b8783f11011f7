"""Tests for the gog Gmail adapter."""

import json
import subprocess
from unittest.mock import patch, MagicMock

from mission_control.adapters.gog_gmail import GmailAdapter

MESSAGES = [
    {
        "id": "m1",
        "threadId": "t1",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "Your order has shipped",
        "payload": {
            "headers": [
                {"name": "From", "value": "Shop Team <orders@shop.example>"},
                {"name": "Subject", "value": "Order shipped"},
                {"name": "Date", "value": "Wed, 15 Jan 2025 09:12:00 +0000"},
            ]
        },
    },
    {
        "id": "m2",
        "threadId": "t2",
        "labelIds": ["INBOX"],
        "payload": {"headers": []},
    },
]


def ok_run(payload) -> MagicMock:
    return MagicMock(stdout=json.dumps(payload), returncode=0)


class TestCommand:
    def test_builds_argument_vector(self):
        cmd = GmailAdapter(account="me@example.com").build_command("from:boss is:unread", 5)
        assert cmd == [
            "gog",
            "gmail",
            "messages",
            "search",
            "from:boss is:unread",
            "--max",
            "5",
            "--account",
            "me@example.com",
            "--json",
        ]

    def test_query_is_sanitized(self):
        cmd = GmailAdapter().build_command('is:unread"; rm -rf ~ $(whoami)', 20)
        assert cmd[4] == "is:unread rm -rf  whoami"
        assert "--account" not in cmd

    def test_leading_dash_is_not_an_option(self):
        assert GmailAdapter().clean_query("--account=evil@example.com") == "account=evil@example.com"

    def test_empty_query_means_unread(self):
        assert GmailAdapter().clean_query(None) == "is:unread"
        assert GmailAdapter().clean_query(" ;;; ") == "is:unread"

    @patch("mission_control.adapters.process.subprocess.run")
    def test_runs_without_shell(self, mock_run):
        mock_run.return_value = ok_run({"messages": []})
        GmailAdapter(account="me@example.com", timeout=3).search_messages("a; b", limit=2)

        args, kwargs = mock_run.call_args
        assert isinstance(args[0], list)
        assert args[0][4] == "a b"
        assert "shell" not in kwargs
        assert kwargs["timeout"] == 3
        assert kwargs["env"]["GOG_ACCOUNT"] == "me@example.com"


class TestParsing:
    @patch("mission_control.adapters.process.subprocess.run")
    def test_parses_headers(self, mock_run):
        mock_run.return_value = ok_run({"messages": MESSAGES})
        messages, ok = GmailAdapter().search_messages()

        assert ok
        first, second = messages
        assert first.to_dict() == {
            "id": "m1",
            "threadId": "t1",
            "labelIds": ["INBOX", "UNREAD"],
            "snippet": "Your order has shipped",
            "subject": "Order shipped",
            "from": "Shop Team",
            "date": "Wed, 15 Jan 2025 09:12:00 +0000",
            "isUnread": True,
        }
        assert second.subject == "No Subject"
        assert second.sender == "Unknown"
        assert second.date == ""
        assert second.is_unread is False

    @patch("mission_control.adapters.process.subprocess.run")
    def test_accepts_bare_list(self, mock_run):
        mock_run.return_value = ok_run(MESSAGES)
        messages, ok = GmailAdapter().search_messages()
        assert ok
        assert [m.id for m in messages] == ["m1", "m2"]

    @patch("mission_control.adapters.process.subprocess.run")
    def test_skips_malformed_message(self, mock_run):
        mock_run.return_value = ok_run({"messages": ["not a message", MESSAGES[0]]})
        messages, ok = GmailAdapter().search_messages()
        assert ok
        assert [m.id for m in messages] == ["m1"]

    @patch("mission_control.adapters.process.subprocess.run")
    def test_no_messages_key_is_empty(self, mock_run):
        mock_run.return_value = ok_run({"resultSizeEstimate": 0})
        assert GmailAdapter().search_messages() == ([], True)


class TestFailures:
    @patch("mission_control.adapters.process.subprocess.run")
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        assert GmailAdapter().search_messages() == ([], False)

    @patch("mission_control.adapters.process.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="gog", timeout=10)
        assert GmailAdapter().search_messages() == ([], False)

    @patch("mission_control.adapters.process.subprocess.run")
    def test_unexpected_payload(self, mock_run):
        mock_run.return_value = ok_run({"messages": "nope"})
        assert GmailAdapter().search_messages() == ([], False)

"""HTTP client for logging activities to a running Mission Control service."""

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)


class ActivityClient:
    """
    Fire-and-forget activity logger.

    Posts to `{base_url}/api/activities`. Failures are logged and never raised,
    so callers in the middle of other work are not interrupted.
    """

    def __init__(self, base_url: str = "http://localhost:3010", timeout: int | float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()

    def log(
        self,
        activity_type: str,
        title: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Post one activity. Returns True if the service accepted it."""
        body: dict[str, Any] = {"type": activity_type, "title": title}
        if description:
            body["description"] = description
        if metadata:
            body["metadata"] = metadata

        try:
            resp = self._session.post(
                f"{self.base_url}/api/activities",
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error logging activity: {e}")
            return False

        if not resp.ok:
            logger.error(f"Failed to log activity: {resp.text}")
            return False
        return True

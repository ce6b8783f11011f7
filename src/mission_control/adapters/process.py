"""Subprocess helpers shared by the CLI-backed adapters."""

import json
import logging
import subprocess
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10

# Anything outside this set (including ; & | ` $ ( ) { } [ ] and quotes) is dropped.
# "#" is kept for calendar ids such as en.usa#holiday@group.v.calendar.google.com
_SAFE_PUNCTUATION = frozenset(" @._-+:/,=#")


def sanitize_arg(value: str) -> str:
    """Keep only letters, digits and a small set of safe punctuation."""
    return "".join(c for c in value if c.isalnum() or c in _SAFE_PUNCTUATION)


def run_json(
    cmd: list[str],
    timeout: int | float = DEFAULT_TIMEOUT,
    env: dict[str, str] | None = None,
) -> tuple[Any, bool]:
    """
    Run a fixed binary with an argument vector and parse its stdout as JSON.

    Never raises. Returns (payload, True) on success and (None, False) when the
    binary is missing, exits nonzero, times out or prints invalid JSON.
    Empty output is an empty list.
    """
    binary = cmd[0]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
            env=env,
        )
    except subprocess.CalledProcessError as e:
        logger.warning(f"{binary} command failed (exit {e.returncode}): {(e.stderr or '').strip()}")
        return None, False
    except FileNotFoundError:
        logger.warning(f"{binary} not found on PATH")
        return None, False
    except subprocess.TimeoutExpired:
        logger.warning(f"{binary} timed out after {timeout}s")
        return None, False
    except OSError as e:
        logger.warning(f"{binary} could not be started: {e}")
        return None, False

    if not result.stdout.strip():
        return [], True

    try:
        return json.loads(result.stdout), True
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse {binary} output: {e}")
        return None, False

"""Centralized constants for hostcmd.

Timeouts for the OS helpers the capabilities shell out to, and input limits
for notification text. Values can be overridden via environment variables
where noted.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int, min_val: int | None = None) -> int:
    """Get integer from environment with optional minimum enforcement."""
    val = int(os.environ.get(name, str(default)))
    if min_val is not None and val < min_val:
        return min_val
    return val


@dataclass(frozen=True)
class Timeouts:
    """Timeouts (in seconds) for external helper processes."""

    # xdotool answers immediately; anything slower means no X session.
    WINDOW_QUERY: int = _env_int("HOSTCMD_WINDOW_QUERY_TIMEOUT", 5, min_val=1)

    # PowerShell cold start can take a few seconds on Windows.
    NOTIFICATION: int = _env_int("HOSTCMD_NOTIFICATION_TIMEOUT", 15, min_val=1)


TIMEOUTS = Timeouts()


@dataclass(frozen=True)
class Limits:
    """Input size limits for notification content."""

    MAX_TITLE_LENGTH: int = 500
    MAX_MESSAGE_LENGTH: int = 5_000

    # ERROR: lines are truncated so a noisy OS error stays one short line.
    MAX_ERROR_REASON_LENGTH: int = 500


LIMITS = Limits()

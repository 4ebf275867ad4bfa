from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    return default


def normalize_log_level(raw: str | None, default: str = "INFO") -> str:
    """Upper-case a level name, falling back to ``default`` for unknown names."""
    level = (raw or "").strip().upper()
    return level if level in LOG_LEVELS else default


@dataclass(frozen=True)
class Settings:
    """Static settings for the helper process.

    Everything is local to the user's session; there are no network endpoints.
    """

    log_level: str = normalize_log_level(os.environ.get("HOSTCMD_LOG_LEVEL"))
    log_path: Path | None = (
        Path(os.environ["HOSTCMD_LOG_PATH"]) if os.environ.get("HOSTCMD_LOG_PATH") else None
    )
    log_max_bytes: int = int(os.environ.get("HOSTCMD_LOG_MAX_BYTES", str(1_000_000)))
    log_backup_count: int = int(os.environ.get("HOSTCMD_LOG_BACKUP_COUNT", "3"))

    # Title/message are embedded in toast XML (Windows) and notification body
    # markup (Linux). Turning this off reproduces unescaped interpolation.
    escape_markup: bool = _env_bool("HOSTCMD_ESCAPE_MARKUP", True)

    # Undecodable messages are dropped silently unless this is enabled.
    report_malformed: bool = _env_bool("HOSTCMD_REPORT_MALFORMED", False)

    retry_delay_seconds: float = float(os.environ.get("HOSTCMD_RETRY_DELAY", "0.05"))
    max_message_bytes: int = int(os.environ.get("HOSTCMD_MAX_MESSAGE_BYTES", str(64 * 1024)))


settings = Settings()

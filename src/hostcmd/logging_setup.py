from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from .settings import normalize_log_level, settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Marker attribute so repeated calls replace our handlers instead of stacking them.
_OWNED = "_hostcmd_handler"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the helper process.

    Logs go to stderr because stdout carries protocol output. When
    ``settings.log_path`` is set, a rotating file handler is added as well.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _OWNED, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(_FORMAT)

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    setattr(stream, _OWNED, True)
    root.addHandler(stream)

    if settings.log_path is not None:
        settings.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        setattr(file_handler, _OWNED, True)
        root.addHandler(file_handler)

    root.setLevel(normalize_log_level(level or settings.log_level))

"""Built-in command handlers.

Each handler takes the command's arguments (or None) and returns a single
line of plaintext. The OS side effects live behind two narrow capability
interfaces so the handlers can run against fakes in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Protocol

from .errors import HandlerError
from .protocol import NotificationRequest

logger = logging.getLogger(__name__)

GET_FOREGROUND_WINDOW = "GetForegroundWindow"
SHOW_NOTIFICATION = "ShowNotification"

# A handler as seen by the dispatcher: arguments in, one line of text out.
Handler = Callable[[Mapping[str, Any] | None], str]


class WindowQuery(Protocol):
    """Window-manager query capability."""

    def get_foreground_window_handle(self) -> int:
        ...


class Notifier(Protocol):
    """Desktop notification capability.

    Returns False (or raises HandlerError) when the notification could not be shown.
    """

    def show_notification(self, sound: bool, title: str, message: str) -> bool:
        ...


def handle_get_foreground_window(
    window_query: WindowQuery,
    arguments: Mapping[str, Any] | None = None,
) -> str:
    handle = window_query.get_foreground_window_handle()
    if not isinstance(handle, int) or isinstance(handle, bool):
        raise HandlerError(
            f"Window query returned {type(handle).__name__}, expected an integer handle",
            command=GET_FOREGROUND_WINDOW,
        )
    return str(handle)


def handle_show_notification(
    notifier: Notifier,
    arguments: Mapping[str, Any] | None = None,
) -> str:
    request = NotificationRequest.from_arguments(arguments)
    logger.debug(
        "Showing notification (sound=%s, title=%d chars, message=%d chars)",
        request.sound,
        len(request.title),
        len(request.message),
    )
    shown = notifier.show_notification(request.sound, request.title, request.message)
    if not shown:
        raise HandlerError("Notification was not shown", command=SHOW_NOTIFICATION)
    return "OK"

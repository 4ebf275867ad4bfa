"""Command Dispatcher and handler registry.

The registry is an immutable name -> handler mapping built once at startup.
Lookup is an exact, case-sensitive match. Unknown commands produce no output;
handler failures produce a single ``ERROR: <reason>`` line.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from enum import Enum
from functools import partial
from types import MappingProxyType
from typing import TextIO

from .config import LIMITS
from .errors import HandlerError, HostCmdError, one_line_reason
from .handlers import (
    GET_FOREGROUND_WINDOW,
    SHOW_NOTIFICATION,
    Handler,
    Notifier,
    WindowQuery,
    handle_get_foreground_window,
    handle_show_notification,
)
from .protocol import Command

logger = logging.getLogger(__name__)

ERROR_PREFIX = "ERROR: "

HandlerRegistry = Mapping[str, Handler]


class DispatchOutcome(str, Enum):
    HANDLED = "handled"
    FAILED = "failed"
    UNKNOWN = "unknown"


def build_registry(window_query: WindowQuery, notifier: Notifier) -> HandlerRegistry:
    """Bind the built-in handlers to their capabilities."""
    return MappingProxyType(
        {
            GET_FOREGROUND_WINDOW: partial(handle_get_foreground_window, window_query),
            SHOW_NOTIFICATION: partial(handle_show_notification, notifier),
        }
    )


def _single_line(text: str) -> str:
    return " ".join(text.splitlines())


class Dispatcher:
    """Runs the handler for a command and writes its result line."""

    def __init__(self, registry: HandlerRegistry, output: TextIO | None = None) -> None:
        if not isinstance(registry, MappingProxyType):
            registry = MappingProxyType(dict(registry))
        self._registry = registry
        self._output = output

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def output(self) -> TextIO:
        # Resolved per write so a replaced sys.stdout is honoured.
        return self._output if self._output is not None else sys.stdout

    def dispatch(self, command: Command) -> DispatchOutcome:
        handler = self._registry.get(command.name)
        if handler is None:
            logger.debug("Ignoring unknown command %r", command.name)
            return DispatchOutcome.UNKNOWN

        try:
            result = handler(command.arguments)
            if not isinstance(result, str):
                raise HandlerError(
                    f"Handler returned {type(result).__name__}, expected text",
                    command=command.name,
                )
        except Exception as e:
            reason = one_line_reason(e, LIMITS.MAX_ERROR_REASON_LENGTH)
            logger.warning(
                "Command %s failed: %s",
                command.name,
                e.to_dict() if isinstance(e, HostCmdError) else reason,
                exc_info=not isinstance(e, HandlerError),
            )
            self.write_line(ERROR_PREFIX + reason)
            return DispatchOutcome.FAILED

        self.write_line(_single_line(result))
        logger.debug("Command %s handled", command.name)
        return DispatchOutcome.HANDLED

    def write_line(self, text: str) -> None:
        """Write one result line and flush it before the next read starts."""
        try:
            self.output.write(text + "\n")
            self.output.flush()
        except BrokenPipeError:
            # Whoever captured our stdout has gone away. Treat as a clean shutdown.
            raise SystemExit(0) from None

"""hostcmd - a long-lived helper that runs host OS commands for shell front-ends.

A shell writes one JSON request to a named channel; hostcmd performs the
action and prints a single plaintext line on stdout.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .channel import ChannelReader
from .dispatch import DispatchOutcome, Dispatcher, build_registry
from .errors import (
    ChannelError,
    ChannelOpenError,
    DecodeError,
    HandlerError,
    HostCmdError,
)
from .protocol import Command, NotificationRequest, decode
from .server import ServerLoop, ServerState

__all__ = [
    "__version__",
    "ChannelReader",
    "Command",
    "NotificationRequest",
    "decode",
    "DispatchOutcome",
    "Dispatcher",
    "build_registry",
    "ServerLoop",
    "ServerState",
    "HostCmdError",
    "ChannelError",
    "ChannelOpenError",
    "DecodeError",
    "HandlerError",
]

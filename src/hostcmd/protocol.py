"""Wire protocol: one JSON object per message.

    {"Command": "<CommandName>", "Arguments": { ... }}

``Command`` is required and must be a string. ``Arguments`` is optional and,
when present, must be an object whose values are strings, booleans or
numbers. Decoding never raises; failures come back as a failed Result.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .config import LIMITS
from .errors import ArgumentError, DecodeError, Result

COMMAND_FIELD = "Command"
ARGUMENTS_FIELD = "Arguments"

_UTF8_BOM = b"\xef\xbb\xbf"

# bool is an int subclass, so it is covered by this tuple too.
_SCALAR_TYPES = (str, int, float)


@dataclass(frozen=True)
class Command:
    """One decoded request: a command name plus optional arguments."""

    name: str
    arguments: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.arguments is not None and not isinstance(self.arguments, MappingProxyType):
            object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))


@dataclass(frozen=True)
class NotificationRequest:
    """Arguments of ShowNotification, validated."""

    sound: bool
    title: str
    message: str

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any] | None) -> "NotificationRequest":
        """Build from the wire argument names ``SoundOpt``, ``Title``, ``Message``.

        Raises:
            ArgumentError: If an argument is missing or has the wrong type.
        """
        if arguments is None:
            raise ArgumentError("ShowNotification requires Arguments", argument="Arguments")

        sound = arguments.get("SoundOpt", False)
        if sound is None:
            sound = False
        if not isinstance(sound, bool):
            raise ArgumentError("SoundOpt must be a boolean", argument="SoundOpt", value=sound)

        title = arguments.get("Title", "")
        if title is None:
            title = ""
        if not isinstance(title, str):
            raise ArgumentError("Title must be a string", argument="Title", value=title)
        if len(title) > LIMITS.MAX_TITLE_LENGTH:
            raise ArgumentError(
                f"Title exceeds maximum length of {LIMITS.MAX_TITLE_LENGTH} characters",
                argument="Title",
            )

        message = arguments.get("Message")
        if not isinstance(message, str):
            raise ArgumentError("Message is required", argument="Message", value=message)
        if len(message) > LIMITS.MAX_MESSAGE_LENGTH:
            raise ArgumentError(
                f"Message exceeds maximum length of {LIMITS.MAX_MESSAGE_LENGTH} characters",
                argument="Message",
            )

        return cls(sound=sound, title=title, message=message)


def decode(payload: bytes, *, max_bytes: int | None = None) -> Result[Command]:
    """Decode one raw message into a Command."""
    if max_bytes is not None and len(payload) > max_bytes:
        return Result.fail(
            DecodeError(f"Message exceeds {max_bytes} bytes", reason="too_large")
        )

    if payload.startswith(_UTF8_BOM):
        payload = payload[len(_UTF8_BOM):]

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        return Result.fail(DecodeError(f"Message is not valid UTF-8: {e}", reason="encoding"))

    text = text.strip()
    if not text:
        return Result.fail(DecodeError("Empty message", reason="syntax"))

    try:
        obj = json.loads(text)
    except ValueError as e:
        return Result.fail(DecodeError(f"Invalid JSON: {e}", reason="syntax"))
    except RecursionError:
        return Result.fail(DecodeError("Invalid JSON: nested too deeply", reason="syntax"))

    if not isinstance(obj, dict):
        return Result.fail(DecodeError("Message must be a JSON object", reason="not_object"))

    if COMMAND_FIELD not in obj:
        return Result.fail(
            DecodeError(f"{COMMAND_FIELD} is required", reason="missing_command", field=COMMAND_FIELD)
        )

    name = obj[COMMAND_FIELD]
    if not isinstance(name, str):
        return Result.fail(
            DecodeError(f"{COMMAND_FIELD} must be a string", reason="bad_type", field=COMMAND_FIELD)
        )

    arguments = obj.get(ARGUMENTS_FIELD)
    if arguments is None:
        return Result.ok(Command(name=name))

    if not isinstance(arguments, dict):
        return Result.fail(
            DecodeError(
                f"{ARGUMENTS_FIELD} must be an object", reason="bad_type", field=ARGUMENTS_FIELD
            )
        )

    for key, value in arguments.items():
        if value is not None and not isinstance(value, _SCALAR_TYPES):
            return Result.fail(
                DecodeError(
                    f"{ARGUMENTS_FIELD}.{key} must be a string, boolean or number",
                    reason="bad_type",
                    field=f"{ARGUMENTS_FIELD}.{key}",
                )
            )

    return Result.ok(Command(name=name, arguments=arguments))

"""hostcmd error hierarchy.

Every failure the helper can observe maps onto one of these types:
- HostCmdError: Base exception for all hostcmd errors
- ChannelError: The input channel is unusable (fatal)
- ReadCancelledError: A blocking read was interrupted (transient)
- DecodeError: A message could not be turned into a Command
- HandlerError: A handler or OS capability failed

Only ChannelError is allowed to end the server loop. Everything else is
absorbed by the loop and turned into silence or a single ``ERROR:`` line.

Usage:
    from hostcmd.errors import ArgumentError, HandlerError

    if not isinstance(title, str):
        raise ArgumentError("Title must be a string", argument="Title")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# =============================================================================
# Result Type for Explicit Success/Failure
# =============================================================================


@dataclass
class Result(Generic[T]):
    """Structured result that makes success/failure explicit.

    Used where a failure is an expected outcome rather than an exceptional
    one, e.g. decoding a message that may well be garbage.

    Usage:
        result = decode(payload)
        if result.success:
            dispatcher.dispatch(result.value)
        else:
            logger.info("Dropping message: %s", result.error.message)
    """

    success: bool
    value: T | None = None
    error: "HostCmdError | None" = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: "HostCmdError") -> "Result[T]":
        """Create a failed result."""
        return cls(success=False, error=error)

    def unwrap(self) -> T:
        """Get value or raise the error.

        Raises:
            HostCmdError: If this is a failed result.
        """
        if self.success:
            return self.value  # type: ignore
        if self.error:
            raise self.error
        raise HostCmdError("Result failed with no error")


# =============================================================================
# Error Base Class
# =============================================================================


class HostCmdError(Exception):
    """Base exception for all hostcmd errors.

    Attributes:
        message: Human-readable error description
        recoverable: Whether the server loop can carry on after this error
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a structured dictionary for logging."""
        return {
            "type": type(self).__name__.lower().replace("error", ""),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Channel Errors
# =============================================================================


class ChannelError(HostCmdError):
    """The input channel cannot be used. Terminates the server loop."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        reason: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        if reason:
            context["reason"] = reason
        super().__init__(message, recoverable=False, context=context)
        self.path = path
        self.reason = reason


class ChannelOpenError(ChannelError):
    """The channel could not be opened (missing, permission denied, ...)."""


class ChannelReadError(ChannelError):
    """The channel was opened but reading from it failed."""


class ReadCancelledError(HostCmdError):
    """A blocking open/read was interrupted by the environment.

    Never escapes the Channel Reader: it is the signal to reopen and retry.
    """

    def __init__(self, message: str = "Channel read cancelled", *, path: str | None = None) -> None:
        super().__init__(message, recoverable=True, context={"path": path})
        self.path = path


# =============================================================================
# Decode Errors
# =============================================================================


class DecodeError(HostCmdError):
    """A message could not be decoded into a Command.

    ``reason`` is one of: syntax, not_object, missing_command, bad_type,
    too_large, encoding.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=True,
            context={"reason": reason, "field": field},
        )
        self.reason = reason
        self.field = field


# =============================================================================
# Handler Errors
# =============================================================================


class HandlerError(HostCmdError):
    """A handler could not complete its side effect.

    The message is what the caller sees after ``ERROR: ``.
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if command:
            context["command"] = command
        super().__init__(message, recoverable=True, context=context)
        self.command = command


class ArgumentError(HandlerError):
    """A handler's arguments failed validation."""

    def __init__(
        self,
        message: str,
        *,
        argument: str | None = None,
        value: Any = None,
    ) -> None:
        super().__init__(
            message,
            context={
                "argument": argument,
                "value": _truncate(str(value), 100) if value is not None else None,
            },
        )
        self.argument = argument


class CapabilityUnavailableError(HandlerError):
    """The host does not provide the OS primitive a handler needs."""

    def __init__(
        self,
        message: str,
        *,
        capability: str | None = None,
        platform: str | None = None,
    ) -> None:
        super().__init__(
            message,
            context={"capability": capability, "platform": platform},
        )
        self.capability = capability


# =============================================================================
# Helpers
# =============================================================================


def _truncate(value: str | None, max_len: int) -> str | None:
    """Truncate a string value for safe logging."""
    if value is None:
        return None
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."


def one_line_reason(exc: BaseException, max_len: int) -> str:
    """Collapse an exception into a single line suitable for an ERROR: result."""
    text = exc.message if isinstance(exc, HostCmdError) else str(exc)
    text = " ".join(text.split())
    if not text:
        text = type(exc).__name__
    return _truncate(text, max_len) or ""

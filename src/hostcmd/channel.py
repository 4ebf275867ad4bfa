"""Channel Reader: one open, one read-to-EOF, one close per message.

The producer (a shell front-end) opens the channel, writes a single request
and closes it, so end-of-stream marks the end of every message. A handle is
therefore never reused: each call to ``read_next_message`` opens the channel
afresh, blocks until the producer has written and closed, and closes again.

Interrupted opens/reads are retried transparently. Bytes read before an
interruption are kept and the reopened channel's bytes are appended to them,
so a message whose producer is still writing arrives whole. Any other failure
to open or read the channel is fatal and raised as a ChannelError.
"""

from __future__ import annotations

import errno
import logging
from collections.abc import Callable
from typing import IO, Any

import tenacity

from .errors import ChannelOpenError, ChannelReadError, ReadCancelledError
from .settings import settings

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096

# ERROR_OPERATION_ABORTED: a pending I/O on a Windows pipe was cancelled.
_WIN_OPERATION_ABORTED = 995

Opener = Callable[..., IO[bytes]]


def _is_cancellation(exc: OSError) -> bool:
    """Check if an OSError means the wait was interrupted rather than failed."""
    if isinstance(exc, InterruptedError):
        return True
    if exc.errno in (errno.EINTR, errno.ECANCELED):
        return True
    return getattr(exc, "winerror", None) == _WIN_OPERATION_ABORTED


class ChannelReader:
    """Reads one message per call from a reopenable channel (e.g. a named pipe)."""

    def __init__(
        self,
        path: str,
        *,
        retry_delay_seconds: float | None = None,
        max_message_bytes: int | None = None,
        opener: Opener = open,
        on_retry: Callable[[int], None] | None = None,
    ) -> None:
        self.path = path
        self.max_message_bytes = (
            settings.max_message_bytes if max_message_bytes is None else max_message_bytes
        )
        self._opener = opener
        self.on_retry = on_retry
        # Partial message carried over from a cancelled read.
        self._pending = bytearray()
        delay = settings.retry_delay_seconds if retry_delay_seconds is None else retry_delay_seconds
        # No stop condition: a cancelled wait is retried for as long as it takes.
        self._retrying = tenacity.Retrying(
            retry=tenacity.retry_if_exception_type(ReadCancelledError),
            wait=tenacity.wait_fixed(delay),
            before_sleep=self._before_retry,
            reraise=True,
        )

    def read_next_message(self) -> bytes:
        """Block until the next complete message has arrived and return it.

        Raises:
            ChannelOpenError: The channel could not be opened.
            ChannelReadError: The channel was opened but could not be read.
        """
        return self._retrying(self.read_once)

    def read_once(self) -> bytes:
        """Open the channel, read until end-of-stream, close it.

        Raises:
            ReadCancelledError: The open or read was interrupted.
            ChannelOpenError: The channel could not be opened.
            ChannelReadError: Reading failed for any other reason.
        """
        try:
            handle = self._opener(self.path, "rb")
        except OSError as e:
            if _is_cancellation(e):
                raise ReadCancelledError(path=self.path) from e
            raise ChannelOpenError(
                f"Cannot open channel {self.path}: {e.strerror or e}",
                path=self.path,
                reason=type(e).__name__,
            ) from e

        with handle:
            try:
                self._drain(handle)
            except OSError as e:
                if _is_cancellation(e):
                    logger.debug(
                        "Keeping %d partial bytes from %s", len(self._pending), self.path
                    )
                    raise ReadCancelledError(path=self.path) from e
                self._pending.clear()
                raise ChannelReadError(
                    f"Cannot read channel {self.path}: {e.strerror or e}",
                    path=self.path,
                    reason=type(e).__name__,
                ) from e

        payload = bytes(self._pending)
        self._pending.clear()
        logger.debug("Read %d bytes from %s", len(payload), self.path)
        return payload

    def _drain(self, handle: IO[bytes]) -> None:
        # Always read to EOF so the producer's write completes, but only keep
        # one byte past the limit; that is enough for the decoder to reject it.
        keep = self.max_message_bytes + 1 if self.max_message_bytes > 0 else None
        while True:
            chunk = handle.read(_CHUNK_SIZE)
            if not chunk:
                break
            if keep is None:
                self._pending += chunk
            elif len(self._pending) < keep:
                self._pending += chunk[: keep - len(self._pending)]

    def _before_retry(self, retry_state: Any) -> None:
        logger.debug(
            "Channel read on %s cancelled (attempt %d), reopening",
            self.path,
            retry_state.attempt_number,
        )
        if self.on_retry is not None:
            self.on_retry(retry_state.attempt_number)

"""Server Loop: Channel Reader -> Request Decoder -> Command Dispatcher.

Each cycle handles exactly one message and finishes writing its output
before the next read starts, so output lines follow request order. The loop
runs until the channel becomes unusable (ChannelError propagates) or the
process is terminated.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

from .channel import ChannelReader, Opener
from .dispatch import ERROR_PREFIX, DispatchOutcome, Dispatcher
from .errors import ChannelError, DecodeError, HostCmdError
from .protocol import decode
from .settings import settings

logger = logging.getLogger(__name__)


class MessageSource(Protocol):
    def read_next_message(self) -> bytes:
        ...


class ServerState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    RETRYING = "retrying"
    DECODING = "decoding"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"


class ServerLoop:
    def __init__(
        self,
        reader: MessageSource,
        dispatcher: Dispatcher,
        *,
        report_malformed: bool | None = None,
        max_message_bytes: int | None = None,
    ) -> None:
        self.reader = reader
        self.dispatcher = dispatcher
        self.report_malformed = (
            settings.report_malformed if report_malformed is None else report_malformed
        )
        self.max_message_bytes = (
            settings.max_message_bytes if max_message_bytes is None else max_message_bytes
        )
        self.state = ServerState.IDLE
        self.cycles = 0
        self.retries = 0

    @classmethod
    def for_channel(
        cls,
        path: str,
        dispatcher: Dispatcher,
        *,
        report_malformed: bool | None = None,
        max_message_bytes: int | None = None,
        retry_delay_seconds: float | None = None,
        opener: Opener = open,
    ) -> "ServerLoop":
        """Build a loop reading from the channel at ``path``.

        The reader reports every cancelled read back to the loop, which counts
        it and passes through the RETRYING state.
        """
        loop: ServerLoop

        def on_retry(attempt: int) -> None:
            loop._on_retry(attempt)

        reader = ChannelReader(
            path,
            retry_delay_seconds=retry_delay_seconds,
            max_message_bytes=max_message_bytes,
            opener=opener,
            on_retry=on_retry,
        )
        loop = cls(
            reader,
            dispatcher,
            report_malformed=report_malformed,
            max_message_bytes=max_message_bytes,
        )
        return loop

    def run(self, max_cycles: int | None = None) -> None:
        """Process messages until ``max_cycles`` is reached, forever if None.

        Raises:
            ChannelError: The channel could not be opened or read.
        """
        while max_cycles is None or self.cycles < max_cycles:
            self.run_once()

    def run_once(self) -> DispatchOutcome | None:
        """Run one full cycle. Returns None when the message was malformed."""
        self._transition(ServerState.READING)
        try:
            payload = self.reader.read_next_message()
        except ChannelError as e:
            self._transition(ServerState.STOPPED)
            logger.error("Channel unusable, stopping: %s", e.message)
            raise

        self._transition(ServerState.DECODING)
        limit = self.max_message_bytes if self.max_message_bytes > 0 else None
        result = decode(payload, max_bytes=limit)

        outcome: DispatchOutcome | None = None
        if result.success and result.value is not None:
            self._transition(ServerState.DISPATCHING)
            outcome = self.dispatcher.dispatch(result.value)
        else:
            self._drop_malformed(result.error)

        self.cycles += 1
        self._transition(ServerState.IDLE)
        return outcome

    def _drop_malformed(self, error: HostCmdError | None) -> None:
        reason = error.reason if isinstance(error, DecodeError) else "unknown"
        logger.info("Dropping malformed message: %s", error.to_dict() if error else {})
        if self.report_malformed:
            self.dispatcher.write_line(f"{ERROR_PREFIX}malformed request ({reason})")

    def _on_retry(self, attempt: int) -> None:
        self.retries += 1
        self._transition(ServerState.RETRYING)
        self._transition(ServerState.READING)

    def _transition(self, state: ServerState) -> None:
        if state is not self.state:
            logger.debug("Server state %s -> %s", self.state.value, state.value)
        self.state = state

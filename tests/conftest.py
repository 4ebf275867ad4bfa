from __future__ import annotations

import errno
import io
import json
import logging
import os
import threading
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from hostcmd.dispatch import Dispatcher, build_registry
from hostcmd.errors import ChannelOpenError, HandlerError


class FakeWindowQuery:
    """Window query that returns a fixed handle and counts calls."""

    def __init__(self, handle: Any = 131234) -> None:
        self.handle = handle
        self.calls = 0

    def get_foreground_window_handle(self) -> int:
        self.calls += 1
        if isinstance(self.handle, Exception):
            raise self.handle
        return self.handle


class FakeNotifier:
    """Notifier that records every notification it is asked to show."""

    def __init__(self, shown: bool = True, error: Exception | None = None) -> None:
        self.shown = shown
        self.error = error
        self.calls: list[tuple[bool, str, str]] = []

    def show_notification(self, sound: bool, title: str, message: str) -> bool:
        self.calls.append((sound, title, message))
        if self.error is not None:
            raise self.error
        return self.shown


class ScriptedReader:
    """Message source that replays a fixed list of payloads.

    Exceptions in the script are raised instead of returned. Once the script
    runs out, the channel is reported as gone.
    """

    def __init__(self, script: list[bytes | Exception]) -> None:
        self.script = list(script)
        self.reads = 0

    def read_next_message(self) -> bytes:
        self.reads += 1
        if not self.script:
            raise ChannelOpenError("Channel closed by test", path="scripted")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def request(command: Any, arguments: Any = None) -> bytes:
    """Encode a request the way the shell front-end does."""
    obj: dict[str, Any] = {"Command": command}
    if arguments is not None:
        obj["Arguments"] = arguments
    return json.dumps(obj).encode("utf-8")


def send_to_fifo(path: Path, payload: bytes, timeout: float = 5.0) -> None:
    """Open the FIFO once, write one message, close it.

    Opens non-blocking so a missing reader shows up as a test failure rather
    than a hang.
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
            break
        except OSError as e:
            if e.errno != errno.ENXIO or time.monotonic() > deadline:
                raise
            time.sleep(0.01)
    try:
        os.write(fd, payload)
    finally:
        os.close(fd)


def wait_until(predicate: Any, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        time.sleep(0.01)


@pytest.fixture
def window_query() -> FakeWindowQuery:
    return FakeWindowQuery()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def dispatcher(
    window_query: FakeWindowQuery,
    notifier: FakeNotifier,
    output: io.StringIO,
) -> Dispatcher:
    return Dispatcher(build_registry(window_query, notifier), output=output)


@pytest.fixture
def fifo_path(tmp_path: Path) -> Path:
    if not hasattr(os, "mkfifo"):
        pytest.skip("named pipes via mkfifo are not available on this platform")
    path = tmp_path / "hostcmd.pipe"
    os.mkfifo(path)
    return path


@pytest.fixture
def failing_notifier() -> FakeNotifier:
    return FakeNotifier(error=HandlerError("toast subsystem unavailable"))


@pytest.fixture
def run_in_thread() -> Iterator[Any]:
    """Start a callable on a daemon thread; fail the test if it never finishes."""
    threads: list[threading.Thread] = []
    errors: list[BaseException] = []

    def start(target: Any, *args: Any) -> threading.Thread:
        def runner() -> None:
            try:
                target(*args)
            except BaseException as e:  # surfaced in the test thread below
                errors.append(e)

        thread = threading.Thread(target=runner, daemon=True)
        threads.append(thread)
        thread.start()
        return thread

    yield start

    for thread in threads:
        thread.join(timeout=5)
        assert not thread.is_alive(), "background thread did not finish"
    if errors:
        raise errors[0]


@pytest.fixture
def reset_logging() -> Iterator[None]:
    """Remove handlers installed by configure_logging after the test."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_hostcmd_handler", False):
            root.removeHandler(handler)
            handler.close()

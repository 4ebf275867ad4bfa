"""Tests for the built-in handlers against fake capabilities."""

from __future__ import annotations

import pytest

from conftest import FakeNotifier, FakeWindowQuery
from hostcmd.errors import ArgumentError, HandlerError
from hostcmd.handlers import handle_get_foreground_window, handle_show_notification


class TestGetForegroundWindow:
    def test_returns_decimal_handle(self) -> None:
        assert handle_get_foreground_window(FakeWindowQuery(65552)) == "65552"

    def test_ignores_arguments(self) -> None:
        assert handle_get_foreground_window(FakeWindowQuery(1), {"extra": True}) == "1"

    def test_zero_handle_when_nothing_focused(self) -> None:
        assert handle_get_foreground_window(FakeWindowQuery(0)) == "0"

    @pytest.mark.parametrize("handle", ["65552", None, True])
    def test_rejects_non_integer_handle(self, handle: object) -> None:
        with pytest.raises(HandlerError, match="expected an integer handle"):
            handle_get_foreground_window(FakeWindowQuery(handle))


class TestShowNotification:
    def test_passes_arguments_through(self) -> None:
        notifier = FakeNotifier()

        result = handle_show_notification(
            notifier, {"SoundOpt": True, "Title": "A", "Message": "B"}
        )

        assert result == "OK"
        assert notifier.calls == [(True, "A", "B")]

    def test_silent_notification(self) -> None:
        notifier = FakeNotifier()

        handle_show_notification(notifier, {"SoundOpt": False, "Title": "T", "Message": "M"})

        assert notifier.calls == [(False, "T", "M")]

    def test_not_shown_is_an_error(self) -> None:
        with pytest.raises(HandlerError, match="not shown"):
            handle_show_notification(FakeNotifier(shown=False), {"Message": "M"})

    def test_invalid_arguments_never_reach_notifier(self) -> None:
        notifier = FakeNotifier()

        with pytest.raises(ArgumentError):
            handle_show_notification(notifier, {"SoundOpt": "yes", "Message": "M"})

        assert notifier.calls == []

    def test_notifier_error_propagates(self, failing_notifier: FakeNotifier) -> None:
        with pytest.raises(HandlerError, match="toast subsystem unavailable"):
            handle_show_notification(failing_notifier, {"Message": "M"})

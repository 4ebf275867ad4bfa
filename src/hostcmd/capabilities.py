"""Concrete OS capability providers.

- Windows: foreground window via pywin32, toast via PowerShell + WinRT
- Linux (X11): foreground window via xdotool, notification via notify-send

Anything else gets providers that fail with CapabilityUnavailableError when
invoked, so the server still starts and reports ``ERROR:`` per request.
"""

from __future__ import annotations

import html
import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass

from .config import TIMEOUTS
from .errors import CapabilityUnavailableError, HandlerError
from .handlers import Notifier, WindowQuery

logger = logging.getLogger(__name__)

APP_NAME = "hostcmd"

# AppUserModelID of Windows PowerShell; toasts need a registered app id.
_POWERSHELL_APP_ID = r"{1AC14E77-02E7-4E5D-B744-2EB1AE5198B7}\WindowsPowerShell\v1.0\powershell.exe"

_TOAST_XML_ENV = "HOSTCMD_TOAST_XML"

# The XML travels through the environment so it is never parsed as PowerShell.
_TOAST_SCRIPT = (
    "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, "
    "ContentType = WindowsRuntime] | Out-Null; "
    "[Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, "
    "ContentType = WindowsRuntime] | Out-Null; "
    "$xml = New-Object Windows.Data.Xml.Dom.XmlDocument; "
    f"$xml.LoadXml($env:{_TOAST_XML_ENV}); "
    "$toast = [Windows.UI.Notifications.ToastNotification]::new($xml); "
    "[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("
    f"'{_POWERSHELL_APP_ID}').Show($toast)"
)


def _run_command(
    cmd: list[str],
    *,
    timeout: int,
    env: dict[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a helper command and return the result."""
    try:
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise HandlerError(f"Command timed out: {cmd[0]}") from exc
    except FileNotFoundError as exc:
        raise CapabilityUnavailableError(
            f"Command not found: {cmd[0]}",
            capability=cmd[0],
            platform=sys.platform,
        ) from exc


def _failure_detail(result: subprocess.CompletedProcess[str]) -> str:
    err = (result.stderr or "").strip()
    if err:
        return err
    out = (result.stdout or "").strip()
    if out:
        return out
    return f"exited with code {result.returncode}"


def build_toast_xml(sound: bool, title: str, message: str, *, escape: bool = True) -> str:
    """Build a ToastGeneric payload with the requested audio setting."""
    if escape:
        title = html.escape(title)
        message = html.escape(message)
    silent = "false" if sound else "true"
    return (
        "<toast>"
        "<visual><binding template=\"ToastGeneric\">"
        f"<text>{title}</text>"
        f"<text>{message}</text>"
        "</binding></visual>"
        f"<audio silent=\"{silent}\"/>"
        "</toast>"
    )


# =============================================================================
# Windows
# =============================================================================


class Win32WindowQuery:
    def get_foreground_window_handle(self) -> int:
        try:
            import win32gui
        except ImportError as exc:
            raise CapabilityUnavailableError(
                "pywin32 is not installed",
                capability="win32gui",
                platform=sys.platform,
            ) from exc
        return int(win32gui.GetForegroundWindow() or 0)


@dataclass(frozen=True)
class ToastNotifier:
    """Shows a Windows toast by handing the XML to PowerShell's WinRT bridge."""

    escape_markup: bool = True
    powershell: str = "powershell"

    def show_notification(self, sound: bool, title: str, message: str) -> bool:
        xml = build_toast_xml(sound, title, message, escape=self.escape_markup)
        env = dict(os.environ)
        env[_TOAST_XML_ENV] = xml
        result = _run_command(
            [self.powershell, "-NoProfile", "-ExecutionPolicy", "Bypass", "-Command", _TOAST_SCRIPT],
            timeout=TIMEOUTS.NOTIFICATION,
            env=env,
        )
        if result.returncode != 0:
            raise HandlerError(f"Toast failed: {_failure_detail(result)}")
        return True


# =============================================================================
# Linux (X11)
# =============================================================================


class XdotoolWindowQuery:
    def get_foreground_window_handle(self) -> int:
        result = _run_command(["xdotool", "getactivewindow"], timeout=TIMEOUTS.WINDOW_QUERY)
        if result.returncode != 0:
            raise HandlerError(f"xdotool failed: {_failure_detail(result)}")
        out = result.stdout.strip()
        try:
            return int(out)
        except ValueError as exc:
            raise HandlerError(f"Unexpected xdotool output: {out!r}") from exc


@dataclass(frozen=True)
class NotifySendNotifier:
    """Shows a notification through the freedesktop notify-send client.

    The body may be rendered as markup by the notification daemon; the summary
    never is.
    """

    escape_markup: bool = True

    def show_notification(self, sound: bool, title: str, message: str) -> bool:
        hint = (
            "--hint=string:sound-name:message-new-instant"
            if sound
            else "--hint=boolean:suppress-sound:true"
        )
        cmd = ["notify-send", f"--app-name={APP_NAME}", hint, "--"]
        # notify-send needs a non-empty summary.
        if title:
            cmd += [title, html.escape(message) if self.escape_markup else message]
        else:
            cmd += [message]
        result = _run_command(cmd, timeout=TIMEOUTS.NOTIFICATION)
        if result.returncode != 0:
            raise HandlerError(f"notify-send failed: {_failure_detail(result)}")
        return True


# =============================================================================
# Unsupported
# =============================================================================


class UnavailableWindowQuery:
    def get_foreground_window_handle(self) -> int:
        raise CapabilityUnavailableError(
            f"Foreground window query is not supported on {sys.platform}",
            capability="window_query",
            platform=sys.platform,
        )


class UnavailableNotifier:
    def show_notification(self, sound: bool, title: str, message: str) -> bool:
        raise CapabilityUnavailableError(
            f"Desktop notifications are not supported on {sys.platform}",
            capability="notifier",
            platform=sys.platform,
        )


def default_capabilities(*, escape_markup: bool = True) -> tuple[WindowQuery, Notifier]:
    """Pick the window query and notifier for the running platform."""
    if sys.platform == "win32":
        return Win32WindowQuery(), ToastNotifier(escape_markup=escape_markup)

    if sys.platform.startswith("linux"):
        window_query: WindowQuery = (
            XdotoolWindowQuery() if shutil.which("xdotool") else UnavailableWindowQuery()
        )
        notifier: Notifier = (
            NotifySendNotifier(escape_markup=escape_markup)
            if shutil.which("notify-send")
            else UnavailableNotifier()
        )
        return window_query, notifier

    logger.warning("No OS capabilities available on %s", sys.platform)
    return UnavailableWindowQuery(), UnavailableNotifier()

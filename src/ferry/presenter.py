"""Turns upload results into notifications and clipboard content."""

import asyncio
import logging
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from ferry.config import Preferences
from ferry.models import UploadedFileRecord

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, title: str, body: str, silent: bool = False) -> None: ...


class Clipboard(Protocol):
    def read_text(self) -> str: ...

    def write_text(self, text: str) -> None: ...


class ConsoleNotifier:
    """Shows notifications on a rich console; a non-silent one rings the bell."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def notify(self, title: str, body: str, silent: bool = False) -> None:
        self.console.print(f"[bold]{escape(title)}[/bold]  {escape(body)}", highlight=False)
        if not silent:
            self.console.bell()


class MemoryClipboard:
    def __init__(self, text: str = ""):
        self.text = text

    def read_text(self) -> str:
        return self.text

    def write_text(self, text: str) -> None:
        self.text = text


class TkClipboard:
    """System clipboard through a hidden tkinter root window."""

    def __init__(self):
        import tkinter

        self._tcl_error = tkinter.TclError
        self._root = tkinter.Tk()
        self._root.withdraw()

    def read_text(self) -> str:
        try:
            return self._root.clipboard_get()
        except self._tcl_error:
            return ""

    def write_text(self, text: str) -> None:
        self._root.clipboard_clear()
        self._root.clipboard_append(text)
        self._root.update()


def format_link(url: str, url_type: str) -> str:
    """Format an uploaded file's URL; unknown types give the raw URL."""
    if url_type == "HTML":
        return f'<img src="{url}" />'
    if url_type == "Markdown":
        return f"![{url}]({url})"
    return url


class ResultPresenter:
    """Presents batch and single-file outcomes according to user preferences."""

    def __init__(self, preferences: Preferences, notifier: Notifier, clipboard: Clipboard):
        self.preferences = preferences
        self.notifier = notifier
        self.clipboard = clipboard
        self._pending: set[asyncio.Task] = set()

    def present_batch(self, success_count: int, fail_count: int) -> None:
        if fail_count == 0:
            self.notifier.notify("Batch upload succeeded", f"{success_count} files in total")
        elif success_count == 0:
            self.notifier.notify("Batch upload failed", f"{fail_count} files in total")
        else:
            self.notifier.notify(
                "Batch upload finished", f"{success_count} succeeded, {fail_count} failed"
            )

    def present_single(
        self,
        success: UploadedFileRecord | None,
        failure: UploadedFileRecord | None,
    ) -> str | None:
        """
        Present a single-file upload.

        Returns:
            The formatted link for a success, otherwise None
        """
        if success is None:
            message = (failure.error_message if failure else None) or "Unknown error"
            self.notifier.notify("Upload failed", message)
            return None

        prefs = self.preferences
        link = format_link(success.url or "", prefs.url_type)
        silent = not prefs.sound

        if not prefs.auto_copy:
            if prefs.show_notification:
                self.notifier.notify("Upload succeeded", link, silent=silent)
            return link

        previous = self.clipboard.read_text() if prefs.auto_recover else ""
        self.clipboard.write_text(link)
        if prefs.show_notification:
            self.notifier.notify("Upload succeeded", "Link copied to clipboard", silent=silent)

        if prefs.auto_recover:
            task = asyncio.get_running_loop().create_task(self._restore_later(previous))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return link

    async def _restore_later(self, previous: str) -> None:
        await asyncio.sleep(self.preferences.restore_delay)
        self.clipboard.write_text(previous)
        logger.debug("Clipboard restored")
        self.notifier.notify(
            "Clipboard restored",
            "Previous clipboard contents are back",
            silent=not self.preferences.sound,
        )

    async def wait_pending(self) -> None:
        """Wait for scheduled clipboard restorations to finish."""
        if self._pending:
            await asyncio.gather(*self._pending)

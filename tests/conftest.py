"""
Pytest configuration for ferry tests
"""

import asyncio
import os
from pathlib import Path

import pytest

from ferry.config import Preferences, Settings
from ferry.history import MemoryHistory
from ferry.models import UploaderOption, UploaderProfile, UploadOutcome, collapse_options
from ferry.orchestrator import UploadOrchestrator
from ferry.presenter import MemoryClipboard, ResultPresenter
from ferry.profiles import ProfileManager, ProfileResolver
from ferry.uploaders.base import Uploader
from ferry.uploaders.registry import UploaderRegistry


class UploadOnlyUploader(Uploader):
    """Backend without any optional file-management operation.

    File names containing "fail" report a failure, names containing "boom" raise.
    """

    name = "upload-only"

    def __init__(self):
        self.options: dict[str, str | None] = {}
        self.calls: list[tuple] = []

    def configure(self, options: list[UploaderOption]) -> None:
        self.options = collapse_options(options)

    async def upload(self, local_path, file_name, directory=None, managed=False):
        self.calls.append((local_path, file_name, directory, managed))
        await asyncio.sleep(0)
        file = os.path.basename(local_path)
        if "boom" in file:
            raise RuntimeError("connection reset")
        if "fail" in file:
            return UploadOutcome.failed("rejected by server")
        base = self.options.get("base", "https://files.example")
        return UploadOutcome.ok(f"{base}/{file_name}")


class FullUploader(UploadOnlyUploader):
    name = "full"

    def __init__(self):
        super().__init__()
        self.deleted: list[str] = []
        self.directories: list[str] = []

    async def list_files(self, directory=None):
        return [{"name": "a.png", "directory": directory or "/"}]

    async def delete_files(self, names):
        self.deleted.extend(names)
        return True

    async def create_directory(self, path):
        self.directories.append(path)
        return True


class RecordingNotifier:
    def __init__(self):
        self.notifications: list[tuple[str, str, bool]] = []

    def notify(self, title, body, silent=False):
        self.notifications.append((title, body, silent))


class RecordingChannel:
    def __init__(self):
        self.sent: list[tuple[str, object]] = []

    def send(self, event, payload=None):
        self.sent.append((event, payload))

    def events(self) -> list[str]:
        return [event for event, _ in self.sent]


def make_profile(profile_id: str, uploader_name: str = "full", **options) -> UploaderProfile:
    return UploaderProfile(
        id=profile_id,
        name=profile_id,
        uploader_name=uploader_name,
        uploader_options=[UploaderOption(name=k, value=v) for k, v in options.items()],
    )


class Harness:
    """Orchestrator wired to in-memory collaborators."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.created: list[Uploader] = []
        self.registry = UploaderRegistry()
        self.registry.register("full", self._track(FullUploader))
        self.registry.register("upload-only", self._track(UploadOnlyUploader))
        self.history = MemoryHistory()
        self.channel = RecordingChannel()
        self.notifier = RecordingNotifier()
        self.clipboard = MemoryClipboard("before")
        self.presenter = ResultPresenter(settings.preferences, self.notifier, self.clipboard)
        self.orchestrator = UploadOrchestrator(
            resolver=ProfileResolver(ProfileManager(settings), self.registry),
            history=self.history,
            channel=self.channel,
            notifier=self.notifier,
            presenter=self.presenter,
        )

    def _track(self, cls):
        def factory():
            uploader = cls()
            self.created.append(uploader)
            return uploader

        return factory


@pytest.fixture
def settings():
    """Two profiles, the first one default."""
    return Settings(
        preferences=Preferences(url_type="Markdown", auto_copy=True, restore_delay=0.01),
        default_uploader_profile_id="main",
        profiles=[
            make_profile("main", base="https://main.example"),
            make_profile("backup", "upload-only", base="https://backup.example"),
        ],
    )


@pytest.fixture
def harness(settings):
    return Harness(settings)


@pytest.fixture
def make_files(tmp_path: Path):
    """Create local files by name and return their paths as strings."""

    def _make(*names: str) -> list[str]:
        paths = []
        for name in names:
            path = tmp_path / name
            path.write_bytes(b"x" * 16)
            paths.append(str(path))
        return paths

    return _make

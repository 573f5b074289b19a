"""Runs batches of files through a profile's backend and reports the outcome."""

import asyncio
import logging
import mimetypes
import os
import time
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from tqdm.asyncio import tqdm

from ferry import events
from ferry.errors import ConfigurationError
from ferry.events import EventChannel
from ferry.history import HistorySink
from ferry.models import BatchResult, UploadedFileRecord, UploaderProfile, UploadOutcome
from ferry.presenter import Notifier, ResultPresenter
from ferry.profiles import ProfileResolver
from ferry.uploaders.base import (
    SupportsCreateDirectory,
    SupportsDeleteFiles,
    SupportsListFiles,
    Uploader,
)

logger = logging.getLogger(__name__)

ERROR_TITLE = "Upload error"


def group_by_profile(items: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    """Group (profile_id, path) pairs by profile id, in first-seen id order."""
    groups: dict[str, list[str]] = {}
    for profile_id, path in items:
        groups.setdefault(profile_id, []).append(path)
    return groups


class UploadOrchestrator:
    """
    Uploads batches of local files through the backend a profile selects.

    Every file of a batch is uploaded concurrently and the batch is reported
    only once all of them finished: one history append, one UI refresh and at
    most one summary notification. Resolution problems abort the batch before
    any file is touched and are reported with a single notification.
    """

    def __init__(
        self,
        resolver: ProfileResolver,
        history: HistorySink,
        channel: EventChannel,
        notifier: Notifier,
        presenter: ResultPresenter,
        show_progress: bool = False,
    ):
        self.resolver = resolver
        self.history = history
        self.channel = channel
        self.notifier = notifier
        self.presenter = presenter
        self.show_progress = show_progress

    async def upload(
        self,
        files: list[str],
        profile_id: str | None = None,
        directory: str | None = None,
        managed: bool = False,
    ) -> BatchResult | None:
        """
        Upload a batch of files.

        Args:
            files: Local file paths
            profile_id: Profile to upload with; empty means the default profile
            directory: Remote directory passed through to the backend
            managed: Upload started from the file manager; reported on its
                own channel and never copied to the clipboard

        Returns:
            The aggregated result, or None if the batch could not start
        """
        try:
            profile, uploader = self.resolver.resolve(profile_id)
        except ConfigurationError as e:
            logger.error("%s", e)
            self.notifier.notify(ERROR_TITLE, str(e))
            return None

        try:
            result = await self._run_batch(files, profile, uploader, directory, managed)
            self._record(result)

            if managed:
                self.channel.send(events.FILE_UPLOAD_REPLY)
            elif len(files) > 1:
                self.presenter.present_batch(len(result.successes), len(result.failures))
            elif len(files) == 1:
                self.presenter.present_single(
                    result.successes[0] if result.successes else None,
                    result.failures[0] if result.failures else None,
                )
        except Exception as e:
            logger.exception("Upload batch failed")
            self.notifier.notify(ERROR_TITLE, str(e) or e.__class__.__name__)
            return None

        logger.info(
            "Uploaded %d/%d files with profile %s",
            len(result.successes),
            result.total,
            profile.id,
        )
        return result

    async def upload_by_profiles(
        self, items: Iterable[tuple[str, str]]
    ) -> list[BatchResult | None]:
        """Upload (profile_id, path) pairs as one independent batch per profile."""
        groups = group_by_profile(items)
        return await asyncio.gather(
            *(self.upload(paths, profile_id) for profile_id, paths in groups.items())
        )

    async def _run_batch(
        self,
        files: list[str],
        profile: UploaderProfile,
        uploader: Uploader,
        directory: str | None,
        managed: bool,
    ) -> BatchResult:
        result = BatchResult()
        if not files:
            return result

        tasks = [
            asyncio.ensure_future(self._upload_file(uploader, profile, path, directory, managed))
            for path in files
        ]
        completed = tqdm.as_completed(
            tasks, total=len(tasks), desc="Uploading", disable=not self.show_progress
        )
        try:
            for next_done in completed:
                record = await next_done
                if record.error_message is None:
                    result.successes.append(record)
                else:
                    result.failures.append(record)
        finally:
            for task in tasks:
                task.cancel()
        return result

    async def _upload_file(
        self,
        uploader: Uploader,
        profile: UploaderProfile,
        path: str,
        directory: str | None,
        managed: bool,
    ) -> UploadedFileRecord:
        name = f"{uuid.uuid4()}{Path(path).suffix}"
        base = {
            "id": str(uuid.uuid4()),
            "name": name,
            "type": mimetypes.guess_type(path)[0] or "-",
            "uploader_profile_id": profile.id,
            "path": path,
            "size": os.path.getsize(path) if os.path.isfile(path) else None,
            "date": int(time.time() * 1000),
        }

        try:
            outcome = await uploader.upload(path, name, directory, managed)
            if not isinstance(outcome, UploadOutcome):
                raise TypeError(f"Backend returned {type(outcome).__name__} instead of an outcome")
            if outcome.success:
                return UploadedFileRecord(**base, url=outcome.url)
            error_message = outcome.error_message or "Upload failed"
        except Exception as e:
            error_message = str(e) or e.__class__.__name__

        logger.warning("Failed to upload %s: %s", path, error_message)
        return UploadedFileRecord(**base, error_message=error_message)

    def _record(self, result: BatchResult) -> None:
        uploaded_files = self.history.append(result.records())
        self.channel.send(events.UPLOADED_FILES_GET_REPLY, uploaded_files)

    async def list_files(
        self, profile_id: str, directory: str | None = None
    ) -> list[dict[str, Any]]:
        uploader = self.resolver.find_uploader(profile_id)
        files: list[dict[str, Any]] = []
        if isinstance(uploader, SupportsListFiles):
            try:
                files = await uploader.list_files(directory)
            except Exception as e:
                self._report_failure("Listing files", profile_id, e)
        self.channel.send(events.FILE_LIST_GET_REPLY, files)
        return files

    async def delete_files(self, profile_id: str, names: list[str]) -> bool:
        uploader = self.resolver.find_uploader(profile_id)
        deleted = False
        if isinstance(uploader, SupportsDeleteFiles):
            try:
                deleted = await uploader.delete_files(names)
            except Exception as e:
                self._report_failure("Deleting files", profile_id, e)
        self.channel.send(events.FILE_DELETE_REPLY, deleted)
        return deleted

    async def create_directory(self, profile_id: str, path: str) -> bool:
        uploader = self.resolver.find_uploader(profile_id)
        created = False
        if isinstance(uploader, SupportsCreateDirectory):
            try:
                created = await uploader.create_directory(path)
            except Exception as e:
                self._report_failure("Creating directory", profile_id, e)
        self.channel.send(events.DIRECTORY_CREATE_REPLY, created)
        return created

    def _report_failure(self, action: str, profile_id: str, error: Exception) -> None:
        logger.exception("%s with profile %s failed", action, profile_id)
        self.notifier.notify(f"{action} failed", str(error) or error.__class__.__name__)
